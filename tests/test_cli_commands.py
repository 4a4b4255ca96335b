"""Test CLI commands and configuration.

Unit tests for the contractgen CLI covering argument parsing, validation,
configuration management and the one-shot auto-generation script.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from contractgen import __version__
from contractgen.cli.config import ContractGenConfig, create_orchestrator, split_command, validate_config
from contractgen.cli.main import _load_binding, app
from contractgen.scripts.auto_generate import auto_generate, main as auto_generate_main
from contractgen.sdk.errors import ExternalToolError
from tests.helpers import ZKVOTE_SOURCE, VoteBinding


@pytest.fixture
def runner() -> CliRunner:
    """CLI test runner fixture."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Contract project with the sample source under contract/src."""
    source_dir = tmp_path / "contract" / "src"
    source_dir.mkdir(parents=True)
    shutil.copy(ZKVOTE_SOURCE, source_dir / "zkvote.compact")
    return tmp_path


@pytest.fixture
def offline_config(project: Path) -> ContractGenConfig:
    """Configuration with every external tool step disabled."""
    return ContractGenConfig(
        contract_source_dir=project / "contract" / "src",
        output_dir=project / "generated",
        compile_enabled=False,
        build_contract_enabled=False,
        build_cli_enabled=False,
    )


def test_config_defaults():
    """Test default configuration values."""
    with patch.dict('os.environ', {}, clear=True):
        config = ContractGenConfig(_env_file=None)
    assert config.contract_source_dir == Path("contract/src")
    assert config.output_dir == Path("contract-cli/generated")
    assert config.debounce_ms == 2000
    assert split_command(config.compiler_command) == ["compactc", "--skip-zk"]


def test_config_load_from_env():
    """Test configuration loading from environment variables."""
    with patch.dict('os.environ', {
        'CONTRACTGEN_CONTRACT_SOURCE_DIR': '/tmp/contract/src',
        'CONTRACTGEN_CONTRACT_FILE_NAME': 'zkvote.compact',
        'CONTRACTGEN_DEBOUNCE_MS': '500',
        'CONTRACTGEN_COMPILE_ENABLED': 'false',
        'CONTRACTGEN_LOG_LEVEL': 'debug'
    }):
        config = ContractGenConfig()
        assert config.contract_source_dir == Path('/tmp/contract/src')
        assert config.contract_file_name == 'zkvote.compact'
        assert config.debounce_ms == 500
        assert config.compile_enabled is False
        assert config.log_level == 'DEBUG'


def test_config_rejects_bad_values():
    """Test field validators."""
    with pytest.raises(ValueError, match="must not be negative"):
        ContractGenConfig(debounce_ms=-1)
    with pytest.raises(ValueError, match="must be positive"):
        ContractGenConfig(poll_interval=0)
    with pytest.raises(ValueError, match="Unknown log level"):
        ContractGenConfig(log_level="chatty")


def test_config_validation_success(offline_config: ContractGenConfig):
    """Test successful configuration validation."""
    validate_config(offline_config)  # Should not raise


def test_config_validation_missing_source_dir(tmp_path: Path):
    """Test configuration validation with a missing source directory."""
    config = ContractGenConfig(contract_source_dir=tmp_path / "missing")
    with pytest.raises(ValueError, match="Contract source directory not found"):
        validate_config(config)


def test_config_validation_missing_compiler(offline_config: ContractGenConfig):
    """Test configuration validation with compiling enabled but no compiler."""
    config = offline_config.model_copy(update={"compile_enabled": True, "compiler_command": "  "})
    with pytest.raises(ValueError, match="Compiler command required"):
        validate_config(config)


def test_create_orchestrator(offline_config: ContractGenConfig):
    """Test orchestrator creation from configuration."""
    config = offline_config.model_copy(update={"debounce_ms": 1500, "build_cli_enabled": True})
    orchestrator = create_orchestrator(config)

    assert orchestrator.guard.quiet_window == 1.5
    assert orchestrator.compile_enabled is False
    assert orchestrator.contract_build_command is None
    assert orchestrator.cli_build_command == ["python", "-m", "compileall", "-q", "."]


def test_version_option(runner: CliRunner):
    """Test --version prints the package version."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"contractgen version {__version__}" in result.output


def test_inspect_table(runner: CliRunner):
    """Test inspect lists functions and ledger state."""
    result = runner.invoke(app, ["inspect", str(ZKVOTE_SOURCE)])
    assert result.exit_code == 0
    assert "Zkvote Contract" in result.output
    assert "increment" in result.output
    assert "Ledger state:" in result.output


def test_inspect_json(runner: CliRunner):
    """Test inspect --json emits the interface model."""
    result = runner.invoke(app, ["inspect", str(ZKVOTE_SOURCE), "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["contract_name"] == "Zkvote Contract"
    assert [f["name"] for f in data["functions"]] == ["increment", "vote_for", "get_vote_count", "public_key_vote"]
    assert data["functions"][2]["mutates"] is False


def test_inspect_missing_file(runner: CliRunner, tmp_path: Path):
    """Test inspect with a file that does not exist."""
    result = runner.invoke(app, ["inspect", str(tmp_path / "nope.compact")])
    assert result.exit_code == 1
    assert "Error reading contract" in result.output


def test_generate_command(runner: CliRunner, tmp_path: Path):
    """Test generate writes the client package."""
    out = tmp_path / "generated"
    result = runner.invoke(app, ["generate", str(ZKVOTE_SOURCE), "--out", str(out)])

    assert result.exit_code == 0
    assert "Client generated successfully" in result.output
    assert (out / "zkvote_api.py").is_file()
    assert (out / "zkvote_cli.py").is_file()
    assert (out / "__init__.py").is_file()


def test_generate_unwritable_output(runner: CliRunner, tmp_path: Path):
    """Test generate reports write failures."""
    blocker = tmp_path / "blocker"
    blocker.write_text("file")
    result = runner.invoke(app, ["generate", str(ZKVOTE_SOURCE), "--out", str(blocker)])
    assert result.exit_code == 1
    assert "Error writing generated files" in result.output


def test_build_command_offline(runner: CliRunner, project: Path):
    """Test build with external tools skipped runs parse and generate."""
    result = runner.invoke(app, [
        "build",
        "--source-dir", str(project / "contract" / "src"),
        "--out", str(project / "generated"),
        "--skip-compile",
        "--skip-build",
    ])

    assert result.exit_code == 0
    assert "Generation complete" in result.output
    assert "Steps: parse -> generate" in result.output
    assert (project / "generated" / "zkvote_cli.py").is_file()


def test_build_command_tool_failure(runner: CliRunner, project: Path):
    """Test build reports the failing step and exit code."""
    orchestrator = MagicMock()
    orchestrator.run.side_effect = ExternalToolError("compile", 1, "syntax error", ["compactc"])

    with patch('contractgen.cli.main.create_orchestrator', return_value=orchestrator):
        result = runner.invoke(app, ["build", "--source-dir", str(project / "contract" / "src")])

    assert result.exit_code == 1
    assert "Step 'compile' failed with exit code 1" in result.output
    assert "syntax error" in result.output


def test_build_command_debounced(runner: CliRunner, project: Path):
    """Test build when the guard refuses the request."""
    orchestrator = MagicMock()
    orchestrator.run.return_value = None

    with patch('contractgen.cli.main.create_orchestrator', return_value=orchestrator):
        result = runner.invoke(app, ["build", "--source-dir", str(project / "contract" / "src")])

    assert result.exit_code == 0
    assert "request skipped" in result.output


def test_build_command_missing_source_dir(runner: CliRunner, tmp_path: Path):
    """Test build with a missing contract directory."""
    result = runner.invoke(app, ["build", "--source-dir", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "Generation failed" in result.output


def test_load_binding():
    """Test binding factories are imported and called."""
    binding = _load_binding("tests.helpers:VoteBinding")
    assert isinstance(binding, VoteBinding)

    with pytest.raises(ValueError, match="Binding must look like"):
        _load_binding("tests.helpers")


def test_interact_command_exits(runner: CliRunner):
    """Test an interactive session that exits immediately."""
    result = runner.invoke(
        app,
        ["interact", str(ZKVOTE_SOURCE), "--binding", "tests.helpers:VoteBinding"],
        input="6\n",
    )
    assert result.exit_code == 0
    assert "Session finished after 0 operation(s)" in result.output


def test_interact_bad_binding(runner: CliRunner):
    """Test interact with a binding that cannot be imported."""
    result = runner.invoke(app, ["interact", str(ZKVOTE_SOURCE), "--binding", "no_such_module:factory"])
    assert result.exit_code == 1
    assert "Session failed" in result.output


def test_auto_generate_offline(offline_config: ContractGenConfig, capsys: pytest.CaptureFixture[str]):
    """Test the one-shot script with external tools disabled."""
    assert auto_generate(offline_config) is True
    out = capsys.readouterr().out
    assert "Auto-generation complete" in out
    assert "4 functions, 4 state variables" in out


def test_auto_generate_failure(offline_config: ContractGenConfig, capsys: pytest.CaptureFixture[str]):
    """Test the one-shot script reports tool failures."""
    orchestrator = MagicMock()
    orchestrator.run.side_effect = ExternalToolError("build-contract", 2, "npm ERR!")

    with patch('contractgen.scripts.auto_generate.create_orchestrator', return_value=orchestrator):
        assert auto_generate(offline_config) is False

    assert "failed at step 'build-contract' (exit code 2)" in capsys.readouterr().out


def test_auto_generate_main_exit_code(project: Path):
    """Test the script entry point maps outcomes to exit codes."""
    with patch.dict('os.environ', {
        'CONTRACTGEN_CONTRACT_SOURCE_DIR': str(project / "missing"),
    }):
        assert auto_generate_main([]) == 1
