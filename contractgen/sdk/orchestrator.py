"""Build pipeline orchestration.

Runs parse -> compile -> build-contract -> generate -> build-cli, one step
at a time. A SingleFlightGuard owned by each orchestrator keeps at most one
run in flight and drops requests that arrive during a run or within the
quiet window after the previous one finished.

A failing step aborts the rest of the run. Files written by earlier steps
stay where they are; the pipeline is best effort, not transactional.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from contractgen.sdk.codegen import CodeGenerator
from contractgen.sdk.errors import ExternalToolError
from contractgen.sdk.models import ContractInterface, GenerationArtifact, PipelineResult
from contractgen.sdk.parser import locate_contract_source, parse_file

logger = logging.getLogger(__name__)

DEFAULT_QUIET_WINDOW = 2.0
MISSING_EXECUTABLE_EXIT_CODE = 127


class SingleFlightGuard:
    """Lock-protected running flag plus the time the last run finished."""

    def __init__(self, quiet_window: float = DEFAULT_QUIET_WINDOW, clock: Callable[[], float] = time.monotonic):
        self.quiet_window = quiet_window
        self._clock = clock
        self._lock = threading.Lock()
        self._running = False
        self._last_completed: float | None = None

    @property
    def running(self) -> bool:
        return self._running

    def try_enter(self) -> bool:
        """Claim the slot; False when a run is in flight or the quiet window is open."""
        with self._lock:
            if self._running:
                return False
            if self._last_completed is not None and self._clock() - self._last_completed < self.quiet_window:
                return False
            self._running = True
            return True

    def leave(self) -> None:
        with self._lock:
            self._running = False
            self._last_completed = self._clock()


class CommandRunner:
    """Run one external command to completion in a working directory."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def __call__(self, step: str, command: Sequence[str], cwd: Path) -> str:
        logger.debug("[%s] %s (cwd=%s)", step, " ".join(command), cwd)
        try:
            completed = subprocess.run(
                list(command),
                cwd=cwd,
                capture_output=not self.verbose,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(step, MISSING_EXECUTABLE_EXIT_CODE, str(e), list(command)) from e
        output = (completed.stdout or "") + (completed.stderr or "")
        if completed.returncode != 0:
            raise ExternalToolError(step, completed.returncode, output, list(command))
        return output


Runner = Callable[[str, Sequence[str], Path], str]


class BuildOrchestrator:
    """End-to-end regeneration of the client package from the contract source."""

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        contract_file_name: str | None = None,
        compiler_command: Sequence[str] = ("compactc", "--skip-zk"),
        contract_build_command: Sequence[str] | None = ("npm", "run", "build"),
        cli_build_command: Sequence[str] | None = ("python", "-m", "compileall", "-q", "."),
        generator: CodeGenerator | None = None,
        runner: Runner | None = None,
        guard: SingleFlightGuard | None = None,
        compile_enabled: bool = True,
    ):
        self.source_dir = source_dir
        self.output_dir = output_dir
        self.contract_file_name = contract_file_name
        self.compiler_command = list(compiler_command)
        self.contract_build_command = list(contract_build_command) if contract_build_command else None
        self.cli_build_command = list(cli_build_command) if cli_build_command else None
        self.compile_enabled = compile_enabled
        self.generator = generator or CodeGenerator()
        self.runner = runner or CommandRunner()
        self.guard = guard or SingleFlightGuard()
        self.runs = 0

    @property
    def contract_project_dir(self) -> Path:
        return self.source_dir.parent

    def locate_source(self) -> Path:
        source = locate_contract_source(self.source_dir, self.contract_file_name)
        self.contract_file_name = source.name
        return source

    def run(self, reason: str = "Manual generation") -> PipelineResult | None:
        """Execute the pipeline once, or return None when the guard refuses."""
        if not self.guard.try_enter():
            logger.debug("⏳ Skipping generation (debounce): %s", reason)
            return None
        try:
            self.runs += 1
            return self._execute(reason)
        finally:
            self.guard.leave()

    def _execute(self, reason: str) -> PipelineResult:
        logger.info("🔄 Starting generation: %s", reason)
        started = datetime.now(timezone.utc)

        source = self.locate_source()
        interface = parse_file(source)
        result = PipelineResult(reason=reason, interface=interface, steps=["parse"], started_at=started)
        logger.info(
            "📋 Found %d functions and %d state variables",
            len(interface.functions), len(interface.state_variables),
        )

        if self.compile_enabled:
            self._compile(source)
            result.steps.append("compile")
        if self.contract_build_command:
            logger.info("🔧 Building contract...")
            self.runner("build-contract", self.contract_build_command, self.contract_project_dir)
            result.steps.append("build-contract")

        result.artifacts = self._generate(interface)
        result.steps.append("generate")

        if self.cli_build_command:
            logger.info("🔧 Building CLI...")
            self.runner("build-cli", self.cli_build_command, self.output_dir)
            result.steps.append("build-cli")

        result.finished_at = datetime.now(timezone.utc)
        logger.info("✅ Generation complete!")
        return result

    def _compile(self, source: Path) -> None:
        logger.info("🔨 Compiling contract...")
        managed_dir = self.source_dir / "managed" / source.stem
        self.runner("compile", [*self.compiler_command, str(source), str(managed_dir)], self.contract_project_dir)
        logger.info("✅ Contract compiled")

    def _generate(self, interface: ContractInterface) -> list[GenerationArtifact]:
        logger.info("📝 Generating client files...")
        return self.generator.write(interface, self.output_dir)

    def watch(
        self,
        poll_interval: float = 0.5,
        stop: threading.Event | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        """Poll the contract source and request a run whenever it changes."""
        stop = stop or threading.Event()
        source = self.locate_source()
        last_mtime = source.stat().st_mtime
        logger.info("👀 Watching %s for changes", source)
        while not stop.wait(poll_interval):
            try:
                mtime = source.stat().st_mtime
            except FileNotFoundError:
                logger.warning("Contract file disappeared: %s", source)
                continue
            if mtime == last_mtime:
                continue
            try:
                result = self.run(f"Contract changed: {source.name}")
            except Exception as e:
                last_mtime = mtime
                logger.error("❌ Generation failed: %s", e)
                if on_error is not None:
                    on_error(e)
                continue
            # a debounced request is retried on the next poll
            if result is not None:
                last_mtime = mtime
