"""Static scan of mod scripts for file-system deletion calls."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from mod_archive import ManifestEntry, PackageHandle
from mod_issues import IssueCode
from mod_record import ModRecord

_log = logging.getLogger(__name__)

# Well known mods that legitimately delete their own settings files
NOT_MALWARE = frozenset({
    "FS22_001_NoDelete",
    "FS22_AutoDrive",
    "FS22_Courseplay",
    "FS22_FSG_Companion",
    "FS22_VehicleControlAddon",
    "MultiOverlayV3",
    "MultiOverlayV4",
    "VehicleInspector",
    "FS19_AutoDrive",
    "FS19_Courseplay",
    "FS19_GlobalCompany",
})

_DELETE_CALL_RE = re.compile(r"\.delete(File|Folder)", re.MULTILINE)


def scan_for_malicious_code(
    record: ModRecord, handle: PackageHandle, manifest: Iterable[ManifestEntry]
) -> bool:
    """Flag the record if any ``.lua`` file calls deleteFile / deleteFolder.

    Returns True when the issue was raised.
    """
    if record.file_detail.short_name in NOT_MALWARE:
        return False

    for entry in manifest:
        if entry.is_folder or entry.extension != "lua":
            continue
        try:
            source = handle.read_text(entry.name)
        except FileNotFoundError:
            _log.warning("Could not read script %s in %s", entry.name, record.file_detail.short_name)
            continue
        if _DELETE_CALL_RE.search(source):
            _log.info("%s: delete call found in %s", record.file_detail.short_name, entry.name)
            record.add_issue(IssueCode.MALICIOUS_CODE)
            return True
    return False
