"""Command line interface: ``inspecta inspect | cleanup | serve``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict

from .cleanup import CleanupType
from .config import REPORT_FORMATS
from .logging import configure_logging
from .orchestrator import Orchestrator
from .report import render_cleanup

EXIT_UNUSABLE = 1


def _add_logging_options(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    """Accept -v/-q both before and after the subcommand."""
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Log debug detail, including why stages were skipped.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Gradle project root (defaults to the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inspecta",
        description="Audit Android package size and find unused resources and dependencies.",
    )
    _add_logging_options(parser)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write debug logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="Report where package bytes go and what looks unused.")
    _add_logging_options(inspect_parser, suppress_default=True)
    _add_path_argument(inspect_parser)
    inspect_parser.add_argument(
        "--format",
        choices=REPORT_FORMATS,
        default=None,
        help="Report format (defaults to report.format from .inspecta.yml, usually text).",
    )
    inspect_parser.add_argument("--output", type=Path, default=None, help="Write the report to a file.")

    cleanup_parser = subparsers.add_parser(
        "cleanup",
        help="Remove unreferenced image resources (dry run unless --confirm).",
    )
    _add_logging_options(cleanup_parser, suppress_default=True)
    _add_path_argument(cleanup_parser)
    # Validated by the orchestrator so a bad value prints the usage hint, not an argparse error.
    cleanup_parser.add_argument(
        "--type",
        dest="resource_type",
        default=None,
        help=f"Resource type to clean: {', '.join(CleanupType.choices())}.",
    )
    cleanup_parser.add_argument("--confirm", action="store_true", help="Delete the files instead of listing them.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service exposing inspect and cleanup.")
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _inspect(args: argparse.Namespace, orchestrator: Orchestrator) -> None:
    report = orchestrator.run_inspect(args.path)
    output = orchestrator.render(report, fmt=args.format)
    if args.output is None:
        sys.stdout.write(output)
        return
    args.output.write_text(output, encoding="utf-8")
    print(f"Report written to {_relativize(args.output)}")


def _cleanup(args: argparse.Namespace, orchestrator: Orchestrator) -> None:
    outcome = orchestrator.run_cleanup(args.path, args.resource_type, confirm=bool(args.confirm))
    path_arg = "" if args.path == "." else args.path
    sys.stdout.write(render_cleanup(outcome, path_arg=path_arg))


def _serve(args: argparse.Namespace, orchestrator: Orchestrator) -> None:
    from .service import run_service

    run_service(host=args.host, port=args.port)


_COMMANDS: Dict[str, Callable[[argparse.Namespace, Orchestrator], None]] = {
    "inspect": _inspect,
    "cleanup": _cleanup,
    "serve": _serve,
}


def main(argv: list[str] | None = None) -> None:
    """Parse ``argv`` and run one command; exits 1 only for an unusable path or output file."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    handler = _COMMANDS[args.command]
    try:
        handler(args, Orchestrator())
    except OSError as exc:
        # Missing or non-directory project path, or an unwritable --output file.
        parser.exit(EXIT_UNUSABLE, f"inspecta: error: {exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
