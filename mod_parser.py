"""
Check one mod package and build its diagnostic record.

Pipeline (each fatal step returns the record immediately)::

    file name        -> FILE_ERROR_NAME_INVALID           (fatal)
    open package     -> FILE_ERROR_UNREADABLE_ZIP         (fatal)
    careerSavegame   -> FILE_IS_A_SAVEGAME                (fatal)
    zips only        -> FILE_ERROR_LIKELY_ZIP_PACK        (fatal)
    modDesc.xml      -> NOT_MOD_MODDESC_MISSING / _PARSE_ERROR (fatal)
    file counts, descriptor, icon, malware scan, map calendar, detail

Public API
----------
ParserOptions
ModParser(options, log_callback).parse(path) -> ModRecord
parse_mod(path, options=None) -> ModRecord
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

import mod_detail
import savegame
from crop_calendar import read_map_basics
from file_rules import check_file_contents, check_file_name, find_mod_pack, is_save_game
from malware_scan import scan_for_malicious_code
from mod_archive import PackageHandle, PackageUnreadableError, open_package
from mod_desc import MOD_DESC_FILENAME, read_mod_desc
from mod_issues import IssueCode
from mod_record import ModRecord
from thumbnails import convert_mod_icon
from xml_helpers import parse_xml

_log = logging.getLogger(__name__)


class ParserOptions(BaseModel):
    """What the pipeline should do beyond the basic checks."""

    model_config = ConfigDict(frozen=True)

    include_mod_detail: bool = False
    include_save_game: bool = False
    include_map_data: bool = True
    skip_detail_icons: bool = False
    skip_mod_icons: bool = False


def _file_date(path: Path) -> str:
    st = path.stat()
    created = getattr(st, "st_birthtime", None) or st.st_ctime
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ModParser:
    """Runs the checks for one package at a time.

    A parser holds no per-package state, so one instance can be reused (or
    shared between threads) for a whole mods folder.
    """

    def __init__(
        self,
        options: ParserOptions | None = None,
        log_callback: Optional[Callable[[str], None]] = None,
    ):
        self.options = options or ParserOptions()
        self._log_cb = log_callback

    # ── Logging ───────────────────────────────────────────────────────

    def log(self, msg: str):
        _log.info(msg)
        if self._log_cb is not None:
            self._log_cb(msg)

    # ── Pipeline ──────────────────────────────────────────────────────

    def parse(self, path: str | os.PathLike) -> ModRecord:
        path = Path(path)
        is_folder = path.is_dir()
        record = ModRecord.new(str(path), path.stem, is_folder)

        if not check_file_name(record):
            record.add_fatal(IssueCode.NAME_INVALID)
            self.log(f"{path.name}: invalid file name")
            return record
        record.can_not_use = False

        if is_folder:
            record.add_issue(IssueCode.NO_MULTIPLAYER_UNZIPPED)

        try:
            handle = open_package(path)
        except PackageUnreadableError as exc:
            _log.warning("Could not open %s: %s", path, exc)
            record.add_fatal(IssueCode.UNREADABLE_ZIP)
            return record

        with handle:
            self._parse_open(record, handle, path)

        self.log(f"{path.name}: {', '.join(record.badge_array) or 'ok'}")
        return record

    def _parse_open(self, record: ModRecord, handle: PackageHandle, path: Path) -> None:
        detail = record.file_detail
        manifest = handle.list()

        try:
            detail.file_date = _file_date(path)
            detail.file_size = handle.total_size()
        except OSError as exc:
            _log.warning("Could not stat %s: %s", path, exc)

        if is_save_game(handle):
            detail.is_save_game = True
            record.add_fatal(IssueCode.LIKELY_SAVEGAME)
            if self.options.include_save_game:
                record.include_save_game = savegame.parse_open_file(handle)
            return

        if not handle.is_folder:
            zip_files = find_mod_pack(manifest)
            if zip_files is not None:
                detail.zip_files = zip_files
                detail.is_mod_pack = True
                record.add_fatal(IssueCode.LIKELY_ZIP_PACK)
                return

        try:
            raw_mod_desc = handle.read_bytes(MOD_DESC_FILENAME)
        except FileNotFoundError:
            record.add_fatal(IssueCode.MODDESC_MISSING)
            return

        mod_desc = parse_xml(raw_mod_desc, label=f"{path.name}/{MOD_DESC_FILENAME}")
        if mod_desc is None:
            record.add_fatal(IssueCode.MODDESC_PARSE_ERROR)
            return

        check_file_contents(record, manifest)
        read_mod_desc(record, mod_desc)

        icon = record.mod_desc.icon_file_name
        if icon is not None and not self.options.skip_mod_icons:
            try:
                record.mod_desc.icon_image = convert_mod_icon(handle.read_bytes(icon))
            except FileNotFoundError:
                _log.debug("Icon %s listed but unreadable", icon)

        scan_for_malicious_code(record, handle, manifest)

        if self.options.include_map_data:
            read_map_basics(record, handle, convert_images=not self.options.skip_mod_icons)

        if self.options.include_mod_detail:
            record.include_detail = mod_detail.parse_open_file(
                handle, mod_desc, manifest, skip_icons=self.options.skip_detail_icons
            )
            record.detail_icon_loaded = not self.options.skip_detail_icons


def parse_mod(path: str | os.PathLike, options: ParserOptions | None = None) -> ModRecord:
    return ModParser(options).parse(path)
