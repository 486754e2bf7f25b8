#!/usr/bin/env python3
"""FS Mod Checker — Entry Point"""

import argparse
import json
import logging
import os
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mod_detail import parse_detail
from mod_parser import ModParser, ParserOptions
from savegame import parse_savegame


def setup_logging(log_dir: Path | None = None, verbose: bool = False) -> tuple[logging.Logger, Path]:
    if log_dir is None:
        log_dir = Path(os.environ.get("APPDATA", "~")).expanduser() / "FSModChecker"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "fsmodchecker.log"

    handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,  # 1 MB
        backupCount=2,
        encoding="utf-8",
    )
    formatter = logging.Formatter("%(asctime)s  %(levelname)-8s  %(message)s")
    handler.setFormatter(formatter)

    # Module loggers are named after their modules, so configure the root
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)

    if verbose:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.INFO)
        console.setFormatter(formatter)
        logger.addHandler(console)
    return logger, log_dir


def install_crash_handler(logger: logging.Logger):
    def handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical(
            "Unhandled exception:\n%s",
            "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )

    sys.excepthook = handle_exception


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check Farming Simulator mod packages")
    parser.add_argument("paths", nargs="+", help="mod .zip files or unpacked mod folders")
    parser.add_argument(
        "--mode",
        choices=("mod", "detail", "savegame"),
        default="mod",
        help="full mod check (default), store item detail only, or save game only",
    )
    parser.add_argument("--detail", action="store_true", help="include store item detail")
    parser.add_argument("--savegame", action="store_true", help="read save games found among the mods")
    parser.add_argument("--skip-icons", action="store_true", help="do not convert mod and map icons")
    parser.add_argument("--skip-detail-icons", action="store_true", help="do not convert store item icons")
    parser.add_argument("--no-maps", action="store_true", help="skip crop calendar and weather for maps")
    parser.add_argument("--pretty", action="store_true")
    parser.add_argument("--log-dir")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> ParserOptions:
    return ParserOptions(
        include_mod_detail=args.detail,
        include_save_game=args.savegame,
        include_map_data=not args.no_maps,
        skip_detail_icons=args.skip_detail_icons,
        skip_mod_icons=args.skip_icons,
    )


def run(args: argparse.Namespace) -> list[dict]:
    results = []
    if args.mode == "detail":
        for path in args.paths:
            results.append(parse_detail(path, skip_icons=args.skip_detail_icons).model_dump(by_alias=True, mode="json"))
    elif args.mode == "savegame":
        for path in args.paths:
            results.append(parse_savegame(path).model_dump(by_alias=True, mode="json"))
    else:
        checker = ModParser(options_from_args(args))
        for path in args.paths:
            results.append(checker.parse(path).model_dump(by_alias=True, mode="json"))
    return results


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logger, _ = setup_logging(Path(args.log_dir) if args.log_dir else None, args.verbose)
    install_crash_handler(logger)
    logger.info("Checking %d package(s)", len(args.paths))

    try:
        results = run(args)
    except Exception:
        logger.exception("Mod check failed")
        return 1

    output = results[0] if len(results) == 1 else results
    print(json.dumps(output, indent=2 if args.pretty else None, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
