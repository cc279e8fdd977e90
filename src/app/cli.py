"""
Command-line interface.

Thin front end over the extraction engine:

    cachesifter list images
    cachesifter extract sounds out/sounds --alias
    cachesifter extract-all out/
    cachesifter swap <id-a> <id-b> --category images
    cachesifter copy <id-a> <id-b>
    cachesifter clear
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from core.app_version import get_app_version
from core.config import AppConfig, load_app_config
from core.locales import format_message
from core.logging import configure_logging, get_logger
from core.settings import UserSettings
from extractors.asset_signatures import Category
from extractors.engine import Engine
from extractors.sources import DatabaseSource, DirectorySource

LOGGER = get_logger("app.cli")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class ConsoleDatabasePrompt:
    """Asks for the storage database location on the terminal."""

    def __init__(
        self,
        locale: str = "en",
        interactive: Optional[bool] = None,
        input_fn: Callable[[str], str] = input,
    ):
        self._locale = locale
        self._interactive = sys.stdin.isatty() if interactive is None else interactive
        self._input = input_fn

    def _text(self, key: str) -> str:
        return format_message(key, self._locale)

    def notify_detection_failed(self) -> None:
        print(self._text("error-sql-detection-title"), file=sys.stderr)
        print(self._text("error-sql-detection-description"), file=sys.stderr)

    def confirm_custom_location(self) -> bool:
        if not self._interactive:
            return False
        print(self._text("confirmation-custom-sql-title"), file=sys.stderr)
        answer = self._input(self._text("confirmation-custom-sql-description") + " [y/N] ")
        return answer.strip().lower() in ("y", "yes", "j", "ja")

    def ask_for_location(self) -> Optional[str]:
        if not self._interactive:
            return None
        answer = self._input(self._text("prompt-sql-location")).strip()
        return answer or None


def build_engine(config: AppConfig, settings: UserSettings, interactive: Optional[bool] = None) -> Engine:
    prompt = ConsoleDatabasePrompt(config.locale, interactive=interactive)
    sources = [DatabaseSource(settings, prompt=prompt), DirectorySource(settings)]
    return Engine(sources, settings, locale=config.locale, temp_directory=config.temp_directory)


def _category(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def cmd_list(engine: Engine, args: argparse.Namespace) -> int:
    engine.refresh(args.category, echo=True, wait=True)
    return 0


def cmd_extract(engine: Engine, args: argparse.Namespace) -> int:
    engine.refresh(args.category, wait=True)
    handle = engine.extract_dir(Path(args.destination), args.category, wait=True, use_alias=args.alias)
    if handle is None:
        return 1
    print(engine.status)
    return 0


def cmd_extract_all(engine: Engine, args: argparse.Namespace) -> int:
    handle = engine.extract_all(Path(args.destination), wait=True, use_alias=args.alias)
    if handle is None:
        return 1
    print(engine.status)
    return 0


def cmd_clear(engine: Engine, args: argparse.Namespace) -> int:
    handle = engine.clear_cache(wait=True)
    if handle is None:
        return 1
    print(engine.status)
    return 0


def cmd_swap(engine: Engine, args: argparse.Namespace) -> int:
    asset_a = engine.create_asset_info(args.asset_a, args.category)
    asset_b = engine.create_asset_info(args.asset_b, args.category)
    ok = engine.swap_assets(asset_a, asset_b)
    print(engine.status)
    return 0 if ok else 1


def cmd_copy(engine: Engine, args: argparse.Namespace) -> int:
    asset_a = engine.create_asset_info(args.asset_a, args.category)
    asset_b = engine.create_asset_info(args.asset_b, args.category)
    ok = engine.copy_assets(asset_a, asset_b)
    print(engine.status)
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cachesifter",
        description="List, extract and manage assets in the game client's local cache.",
    )
    parser.add_argument("--version", "-V", action="version", version=f"CacheSifter {get_app_version()}")
    parser.add_argument("--base-dir", type=Path, default=PROJECT_ROOT,
                        help="Directory holding config/ (default: project root)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Also log to the console")

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="Print the ids of cached assets")
    list_parser.add_argument("category", type=_category, help="music, sounds, images, ktx, rbxm or all")
    list_parser.set_defaults(func=cmd_list)

    extract_parser = subparsers.add_parser("extract", help="Extract one category into a directory")
    extract_parser.add_argument("category", type=_category)
    extract_parser.add_argument("destination", help="Output directory")
    extract_parser.add_argument("--alias", action="store_true", help="Name files by their alias")
    extract_parser.set_defaults(func=cmd_extract)

    extract_all_parser = subparsers.add_parser("extract-all", help="Extract music and everything else")
    extract_all_parser.add_argument("destination", help="Output directory")
    extract_all_parser.add_argument("--alias", action="store_true", help="Name files by their alias")
    extract_all_parser.set_defaults(func=cmd_extract_all)

    clear_parser = subparsers.add_parser("clear", help="Delete the client's cache")
    clear_parser.set_defaults(func=cmd_clear)

    for name, func, help_text in (
        ("swap", cmd_swap, "Swap the contents of two assets"),
        ("copy", cmd_copy, "Overwrite the second asset with the first"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("asset_a")
        sub.add_argument("asset_b")
        sub.add_argument("--category", type=_category, default=Category.ALL)
        sub.set_defaults(func=func)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        return 0

    config = load_app_config(args.base_dir)
    configure_logging(
        config.logs_dir,
        level=config.logging.level_number,
        max_bytes=config.logging.max_mb * 1024 * 1024,
        backup_count=config.logging.backup_count,
        console=args.verbose,
    )
    settings = UserSettings.load(config.settings_path)
    engine = build_engine(config, settings)
    LOGGER.info("Running %s (version %s)", args.command, get_app_version())
    try:
        return args.func(engine, args)
    finally:
        engine.clean_up()


if __name__ == "__main__":
    sys.exit(main())
