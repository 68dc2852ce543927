"""CLI entrypoints for typsite commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .errors import TypsiteError
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .paths import find_root
from .scaffold import init_project


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also append log records (including dev server errors) to this file.",
    )


def _add_root_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-r",
        "--root",
        type=Path,
        default=None,
        help="Project root (defaults to the nearest directory containing content/).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typsite",
        description="Static site generator for Typst -> HTML.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Build the static site into the out/ directory.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_log_file_option(build_parser, suppress_default=True)
    _add_root_option(build_parser)

    dev_parser = subparsers.add_parser(
        "dev",
        help="Start a local development server with live reloading.",
    )
    _add_verbose_option(dev_parser, suppress_default=True)
    _add_log_file_option(dev_parser, suppress_default=True)
    _add_root_option(dev_parser)
    dev_parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Port for the local server (defaults to 3000).",
    )
    dev_parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind (defaults to 0.0.0.0).",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new typsite project.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_log_file_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "-d",
        "--dir",
        type=Path,
        default=None,
        help="Directory to initialize (defaults to current directory).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for typsite commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    if args.command == "build":
        root = _resolve_root(parser, args.root)
        report = Orchestrator().build(root, dev_mode=False)
        if not report.ok:
            parser.exit(1, f"build failed with {len(report.failures)} error(s)\n")
    elif args.command == "dev":
        root = _resolve_root(parser, args.root)
        from .service import run_dev_server

        try:
            asyncio.run(run_dev_server(root, args.port, host=args.host))
        except KeyboardInterrupt:
            logger.info("shutting down")
        except (OSError, TypsiteError) as exc:
            parser.exit(1, f"dev server error: {exc}\n")
    elif args.command == "init":
        directory = args.dir if args.dir is not None else Path.cwd()
        try:
            written = init_project(directory)
        except (FileExistsError, TypsiteError) as exc:
            parser.exit(1, f"project initialization error: {exc}\n")
        for path in written:
            print(f"created {_relativize(path)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _resolve_root(parser: argparse.ArgumentParser, root: Path | None) -> Path:
    if root is not None:
        return root.expanduser().resolve()
    try:
        return find_root()
    except TypsiteError as exc:
        parser.exit(1, f"{exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
