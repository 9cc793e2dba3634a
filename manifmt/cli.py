"""CLI entrypoint for manifmt."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .formatter import ManifestFormatter
from .loader import ManifestError
from .logging import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manifmt",
        description="Rewrite Cargo.toml manifests into a canonical form.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory or manifest inside the workspace (defaults to current directory).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report manifests that are not canonical without rewriting them.",
    )
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Print the changes as a unified diff without rewriting any file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for manifmt."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    formatter = ManifestFormatter()
    preview = bool(args.check or args.diff)
    try:
        report = formatter.format_workspace(Path(args.path), check=preview)
    except (ManifestError, ConfigError, OSError) as exc:
        parser.exit(1, f"manifmt failed: {exc}\n")

    for outcome in report.changed:
        if args.diff:
            sys.stdout.write(outcome.diff)
        elif not outcome.written:
            print(f"{_relativize(outcome.path)} is not canonical")

    if report.failures:
        parser.exit(1, f"manifmt failed for {len(report.failures)} manifest(s)\n")
    if args.check and report.changed:
        parser.exit(1)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
