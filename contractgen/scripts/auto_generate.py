#!/usr/bin/env python3
"""One-shot regeneration of the contract client package.

Reads configuration from CONTRACTGEN_* environment variables (or .env),
runs the full pipeline once and exits non-zero on failure.

Usage: python -m contractgen.scripts.auto_generate [--verbose]
"""

from __future__ import annotations

import argparse

from contractgen.cli.config import ContractGenConfig, create_orchestrator, validate_config
from contractgen.cli.log import configure_logging
from contractgen.sdk.errors import ExternalToolError


def auto_generate(config: ContractGenConfig) -> bool:
    """Run the pipeline once and report the outcome."""
    print("🚀 Starting contract client auto-generator...")
    print(f"📁 Contract source: {config.contract_source_dir}")
    print(f"🎯 Output: {config.output_dir}")

    try:
        validate_config(config)
        result = create_orchestrator(config).run("Manual generation")
    except ExternalToolError as e:
        print(f"❌ Auto-generation failed at step '{e.step}' (exit code {e.exit_code})")
        if e.output:
            print(e.output)
        return False
    except Exception as e:
        print(f"❌ Auto-generation failed: {e}")
        return False

    if result is None:
        print("⏳ Generation skipped: another run is in progress")
        return True
    print("✅ Auto-generation complete!")
    print(f"📋 {len(result.interface.functions)} functions, {len(result.interface.state_variables)} state variables")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Regenerate the contract client package")
    parser.add_argument("--verbose", "-v", action="store_true", help="Stream external tool output")
    args = parser.parse_args(argv)

    config = ContractGenConfig(verbose=True) if args.verbose else ContractGenConfig()
    configure_logging(config.log_level, config.verbose)
    return 0 if auto_generate(config) else 1


if __name__ == "__main__":
    raise SystemExit(main())
