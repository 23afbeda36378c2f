#!/usr/bin/env python3
"""
TypeScript Error Healer - Main Entry Point

Runs the self-healing type-check loop against a local TypeScript project,
or serves the HTTP control API.

Usage:
    python main.py run --project ./web --markdown
    python main.py run --project ./web --dry-run
    python main.py serve --port 8000

Exit codes (run):
    0  no diagnostics remain
    1  diagnostics remain
    2  fatal error (configuration, git, initial type check)
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from healer.agents.orchestrator import Orchestrator
from healer.core.config import load_settings
from healer.core.errors import ConfigError
from healer.core.output_formatter import format_summary
from healer.utils.logging_config import setup_logging

logger = logging.getLogger("main")

EXIT_CLEAN = 0
EXIT_REMAINING = 1
EXIT_FATAL = 2

_COMMANDS = ("run", "serve")


def cmd_run(args) -> int:
    """Handle 'run' subcommand."""
    try:
        settings = load_settings(
            args.project,
            config_file=args.config,
            dry_run=args.dry_run or None,
            create_backup=False if args.no_backup else None,
            write_report=False if args.no_report else None,
            write_markdown=args.markdown or None,
            max_iterations_per_strategy=args.max_iterations,
            max_allowed_increase=args.max_increase,
            type_check_command=args.command,
        )
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_dir=os.path.join(settings.project_root, settings.log_dir),
    )

    try:
        report = Orchestrator(settings).run()
    except Exception as e:
        logger.exception("Error resolution failed: %s", e)
        return EXIT_FATAL

    print("\n".join(format_summary(report)))
    return EXIT_CLEAN if report.final_total == 0 else EXIT_REMAINING


def cmd_serve(args) -> int:
    """Handle 'serve' subcommand."""
    import uvicorn
    from healer.api.app import create_app

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_to_file=False)
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return EXIT_CLEAN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Self-healing type-check loop for TypeScript projects"
    )
    subparsers = parser.add_subparsers(dest="command_name", help="Commands")

    run_parser = subparsers.add_parser("run", help="Resolve type errors in a project (default)")
    run_parser.add_argument(
        "--project",
        type=str,
        default=".",
        help="Project root, a git working tree (default: current directory)"
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what each strategy would change without writing files or committing"
    )
    run_parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not copy files to the backup directory before rewriting them"
    )
    run_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the JSON report"
    )
    run_parser.add_argument(
        "--markdown",
        action="store_true",
        help="Also write a Markdown report"
    )
    run_parser.add_argument(
        "--max-iterations",
        type=int,
        help="Runs of one strategy before moving on (default: 3)"
    )
    run_parser.add_argument(
        "--max-increase",
        type=int,
        help="Tolerated diagnostic increase before rolling back (default: 1)"
    )
    run_parser.add_argument(
        "--config",
        type=str,
        help="YAML config file (default: .tsheal.yml in the project root)"
    )
    run_parser.add_argument(
        "--command",
        type=str,
        help="Type-check command, e.g. \"npx tsc --noEmit\" (default: auto-detected)"
    )
    run_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP control API")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in _COMMANDS + ("-h", "--help"):
        argv.insert(0, "run")

    args = build_parser().parse_args(argv)
    if args.command_name == "serve":
        return cmd_serve(args)
    return cmd_run(args)


if __name__ == "__main__":
    sys.exit(main())
