"""CLI configuration management for contractgen using pydantic-settings.

Handles contract locations, external tool commands and pipeline tuning
following pydantic-settings best practices with BaseSettings.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from contractgen.sdk.orchestrator import BuildOrchestrator, CommandRunner, SingleFlightGuard


class ContractGenConfig(BaseSettings):
    """contractgen configuration using pydantic-settings BaseSettings."""

    model_config = SettingsConfigDict(
        env_prefix='CONTRACTGEN_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    contract_source_dir: Path = Field(
        default=Path("contract/src"),
        description="Directory holding the .compact contract source"
    )
    contract_file_name: str | None = Field(
        default=None,
        description="Contract file name; auto-detected when unset"
    )
    output_dir: Path = Field(
        default=Path("contract-cli/generated"),
        description="Directory the generated client package is written to"
    )
    compiler_command: str = Field(
        default="compactc --skip-zk",
        description="DSL compiler invocation; source and output dir are appended"
    )
    contract_build_command: str = Field(
        default="npm run build",
        description="Build command run in the contract project directory"
    )
    cli_build_command: str = Field(
        default="python -m compileall -q .",
        description="Build command run in the output directory"
    )
    compile_enabled: bool = Field(default=True, description="Run the compile step")
    build_contract_enabled: bool = Field(default=True, description="Run the contract build step")
    build_cli_enabled: bool = Field(default=True, description="Run the CLI build step")
    debounce_ms: int = Field(default=2000, description="Quiet window after a run, in milliseconds")
    poll_interval: float = Field(default=0.5, description="Watch mode polling interval, in seconds")
    verbose: bool = Field(default=False, description="Stream external tool output")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('debounce_ms')
    @classmethod
    def validate_debounce(cls, v: int) -> int:
        """Validate debounce window is not negative."""
        if v < 0:
            raise ValueError("Debounce window must not be negative")
        return v

    @field_validator('poll_interval')
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        """Validate polling interval is positive."""
        if v <= 0:
            raise ValueError("Poll interval must be positive")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


def split_command(value: str) -> list[str]:
    """Split a configured command line into argv."""
    return shlex.split(value)


def validate_config(config: ContractGenConfig) -> None:
    """Validate configuration completeness for pipeline operations."""
    if not config.contract_source_dir.is_dir():
        raise ValueError(
            f"Contract source directory not found: {config.contract_source_dir}. "
            "Set CONTRACTGEN_CONTRACT_SOURCE_DIR environment variable."
        )
    if config.compile_enabled and not split_command(config.compiler_command):
        raise ValueError("Compiler command required. Set CONTRACTGEN_COMPILER_COMMAND environment variable.")


def create_orchestrator(config: ContractGenConfig) -> BuildOrchestrator:
    """Create BuildOrchestrator from configuration."""
    return BuildOrchestrator(
        source_dir=config.contract_source_dir,
        output_dir=config.output_dir,
        contract_file_name=config.contract_file_name,
        compiler_command=split_command(config.compiler_command),
        contract_build_command=split_command(config.contract_build_command) if config.build_contract_enabled else None,
        cli_build_command=split_command(config.cli_build_command) if config.build_cli_enabled else None,
        runner=CommandRunner(verbose=config.verbose),
        guard=SingleFlightGuard(quiet_window=config.debounce_ms / 1000),
        compile_enabled=config.compile_enabled,
    )
