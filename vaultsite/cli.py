"""CLI entrypoints for vaultsite commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config, save_config
from .logging import configure_logging
from .orchestrator import GenerationError, Orchestrator


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


def _add_vault_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--vault",
        default=".",
        help="Path to the vault root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultsite",
        description="Publish a vault of linked markdown notes as a static HTML site.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Regenerate the whole site from the vault.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the vault root (defaults to current directory).",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory relative to the vault (persisted for future runs).",
    )
    build_parser.add_argument(
        "--site-name",
        default=None,
        help="Title shown in the sidebar header (defaults to the vault folder name).",
    )
    build_parser.add_argument(
        "--private-folders",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Honour locked folders when deciding what to publish.",
    )
    build_parser.add_argument(
        "--no-font-check",
        action="store_true",
        help="Skip the remote web-font availability check.",
    )

    lock_parser = subparsers.add_parser(
        "lock",
        help="Keep a folder out of the site while private folders are enabled.",
    )
    _add_verbose_option(lock_parser, suppress_default=True)
    _add_vault_option(lock_parser)
    lock_parser.add_argument("folder", help="Folder path relative to the vault root.")

    unlock_parser = subparsers.add_parser(
        "unlock",
        help="Publish a previously locked folder again.",
    )
    _add_verbose_option(unlock_parser, suppress_default=True)
    _add_vault_option(unlock_parser)
    unlock_parser.add_argument("folder", help="Folder path relative to the vault root.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service that triggers generation runs.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for vaultsite commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=args.quiet, log_file=args.log_file)

    if args.command == "build":
        _run_build(parser, args)
    elif args.command in {"lock", "unlock"}:
        _run_lock(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_build(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    orchestrator = Orchestrator()
    try:
        report = orchestrator.generate(
            args.path,
            output_dir=args.output,
            site_name=args.site_name,
            allow_private_folders=args.private_folders,
            check_fonts=False if args.no_font_check else None,
        )
    except GenerationError as exc:
        parser.exit(1, f"vaultsite build failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"vaultsite build failed: {exc}\nRun with --verbose for more details.\n")

    rel_path = _relativize(report.output_root)
    print(f"Site generated at {rel_path} ({len(report.pages)} pages, {len(report.assets)} assets)")
    if report.failures:
        lines = [f"  {failure.path}: {failure.error}" for failure in report.failures]
        parser.exit(1, f"{len(report.failures)} file(s) could not be published:\n" + "\n".join(lines) + "\n")


def _run_lock(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.vault))
        if args.command == "lock":
            changed = config.lock_folder(args.folder)
        else:
            changed = config.unlock_folder(args.folder)
        if changed:
            save_config(config)
    except ConfigError as exc:
        parser.exit(1, f"vaultsite {args.command} failed: {exc}\n")

    verb = "Locked" if args.command == "lock" else "Unlocked"
    if not changed:
        state = "already locked" if args.command == "lock" else "not locked"
        print(f"{args.folder} is {state}")
    else:
        print(f"{verb} {args.folder}")
    if args.command == "lock" and not config.allow_private_folders:
        print("Note: private folders are disabled; run build with --private-folders to honour locks")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
