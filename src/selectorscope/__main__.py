from __future__ import annotations

import argparse
from pathlib import Path
import sys

from .config import CONFIG_PATH, load_config
from .dom import parse_html
from .logs import build_logger
from .selector_engine import infer_document


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="selectorscope",
        description="Hover elements in a live page and read a replay-stable selector for each.",
    )
    parser.add_argument("--config", type=Path, default=None, help=f"config file (default: {CONFIG_PATH})")
    commands = parser.add_subparsers(dest="command", required=True)

    watch = commands.add_parser("watch", help="open a page in Chromium with the selector overlay")
    watch.add_argument("url")
    watch.add_argument("--headless", action="store_true")

    infer = commands.add_parser("infer", help="print selectors for the elements of an HTML file")
    infer.add_argument("file", type=Path)
    infer.add_argument("--all", action="store_true", help="include non-interactive elements")
    return parser


def _infer(path: Path, include_all: bool, config_path: Path | None) -> int:
    try:
        markup = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Could not read {path}: {exc}", file=sys.stderr)
        return 1

    engine = load_config(config_path).build_engine()
    document = parse_html(markup)
    for _element, selector in infer_document(document, engine, interactive_only=not include_all):
        print(f"{selector.kind}\t{selector.text}")
    return 0


def main(argv: list[str] | None = None) -> int:
    if sys.version_info < (3, 11):
        raise SystemExit(
            "selectorscope requires Python 3.11+. "
            f"Current interpreter: {sys.executable} (Python {sys.version.split()[0]})"
        )
    args = _build_parser().parse_args(argv)

    if args.command == "infer":
        return _infer(args.file, args.all, args.config)

    logger = build_logger()
    from .runner import run_inspector

    def _status(message: str) -> None:
        logger.info(message)
        print(f"[selectorscope] {message}")

    return run_inspector(args.url, load_config(args.config), headless=args.headless, on_status=_status)


if __name__ == "__main__":
    raise SystemExit(main())
