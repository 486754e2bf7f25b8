"""
Naming and content rules for mod packages.

The game only loads ``.zip`` mods whose file name is a plain identifier, and
several asset types have hard size or count limits before they start to hurt
load times.  These checks only look at names and the manifest; nothing is
decompressed here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from mod_archive import ManifestEntry, PackageHandle
from mod_issues import IssueCode
from mod_record import ModRecord, ZipPackFile

_log = logging.getLogger(__name__)

SAVEGAME_MARKER = "careerSavegame.xml"

KNOWN_GOOD_EXTENSIONS = frozenset({
    "png", "dds", "i3d", "shapes", "lua", "gdm", "cache",
    "xml", "grle", "pdf", "txt", "gls", "anim", "ogg",
})

PIRACY_EXTENSIONS = frozenset({"dat", "l64"})

# extension -> how many are allowed before the issue is raised
MAX_FILE_COUNTS: dict[str, tuple[int, IssueCode]] = {
    "grle": (10, IssueCode.GRLE_TOO_MANY),
    "pdf": (1, IssueCode.PDF_TOO_MANY),
    "png": (128, IssueCode.PNG_TOO_MANY),
    "txt": (2, IssueCode.TXT_TOO_MANY),
}

# extension -> largest size in bytes that is still acceptable
MAX_FILE_SIZES: dict[str, tuple[int, IssueCode]] = {
    "cache": (10 * 1024 * 1024, IssueCode.I3D_TOO_BIG),
    "dds": (12 * 1024 * 1024, IssueCode.DDS_TOO_BIG),
    "gdm": (18 * 1024 * 1024, IssueCode.GDM_TOO_BIG),
    "shapes": (256 * 1024 * 1024, IssueCode.SHAPES_TOO_BIG),
    "xml": (256 * 1024, IssueCode.XML_TOO_BIG),
}

_UNZIP_RE = re.compile(r"unzip", re.IGNORECASE)
_DIGIT_RE = re.compile(r"^\d")
_VALID_NAME_RE = re.compile(r"^[A-Za-z_]\w+$", re.ASCII)
_COPY_RE = re.compile(r"^(?P<name>[A-Za-z]\w+)(?: - .+$| \(.+$)", re.ASCII)


# ── File name ─────────────────────────────────────────────────────────


def check_file_name(record: ModRecord) -> bool:
    """Check the package name, returning False if the game would refuse it.

    Stops at the first failing rule.  The caller decides what a failure
    means (the pipeline marks it as a fatal invalid name).
    """
    detail = record.file_detail

    if not detail.is_folder:
        suffix = PurePosixPath(detail.full_path.replace("\\", "/")).suffix.lower()
        if suffix != ".zip":
            if suffix in (".rar", ".7z"):
                record.add_issue(IssueCode.UNSUPPORTED_ARCHIVE)
            else:
                record.add_issue(IssueCode.GARBAGE_FILE)
            return False

    short_name = detail.short_name

    if _UNZIP_RE.search(short_name):
        record.add_issue(IssueCode.LIKELY_ZIP_PACK)

    if _DIGIT_RE.match(short_name):
        record.add_issue(IssueCode.NAME_STARTS_DIGIT)

    if not _VALID_NAME_RE.match(short_name):
        copy = _COPY_RE.match(short_name)
        if copy:
            detail.copy_name = copy.group("name")
            record.add_issue(IssueCode.LIKELY_COPY)
        return False

    return True


# ── Manifest contents ─────────────────────────────────────────────────


def check_file_contents(record: ModRecord, manifest: Iterable[ManifestEntry]) -> None:
    """Count, size and classify every file in the manifest."""
    detail = record.file_detail
    remaining = {ext: limit for ext, (limit, _) in MAX_FILE_COUNTS.items()}

    for entry in manifest:
        if entry.is_folder:
            continue
        ext = entry.extension

        if " " in entry.name:
            record.add_issue(IssueCode.SPACE_IN_FILE)
            detail.space_files.append(entry.name)

        if ext not in KNOWN_GOOD_EXTENSIONS:
            if ext in PIRACY_EXTENSIONS:
                record.add_issue(IssueCode.LIKELY_PIRACY)
            record.add_issue(IssueCode.HAS_EXTRA)
            detail.extra_files.append(entry.name)
            continue

        if ext == "lua":
            record.mod_desc.script_files += 1
        elif ext == "i3d":
            detail.i3d_files.append(entry.name)
        elif ext == "dds":
            detail.image_dds.append(entry.name)
        elif ext == "png" and not entry.name.endswith("_weight.png"):
            detail.image_non_dds.append(entry.name)
            detail.png_texture.append(entry.name)

        if ext in remaining:
            remaining[ext] -= 1
            if remaining[ext] < 0:
                record.add_issue(MAX_FILE_COUNTS[ext][1])

        if ext in MAX_FILE_SIZES:
            max_size, issue = MAX_FILE_SIZES[ext]
            if entry.size > max_size:
                record.add_issue(issue)
                detail.too_big_files.append(entry.name)


# ── Package classification ────────────────────────────────────────────


def is_save_game(handle: PackageHandle) -> bool:
    return handle.exists(SAVEGAME_MARKER)


def find_mod_pack(manifest: list[ManifestEntry]) -> list[ZipPackFile] | None:
    """Return the contained archives if the package is only a bundle of zips."""
    if not manifest:
        return None
    if not all(not e.is_folder and e.extension == "zip" for e in manifest):
        return None
    return [ZipPackFile(name=e.name, size=e.size) for e in manifest]
