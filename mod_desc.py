"""
Extract descriptor metadata from a parsed ``modDesc.xml``.

Only fields the mod list needs are read.  Anything missing falls back to the
record defaults; where the game itself would complain, an issue is raised.
"""

from __future__ import annotations

import logging

from lxml import etree

from mod_issues import IssueCode
from mod_record import PLACEHOLDER, ModRecord
from thumbnails import normalize_image_name
from xml_helpers import children, first, first_attr, first_text, is_true, to_uint

_log = logging.getLogger(__name__)

MOD_DESC_FILENAME = "modDesc.xml"
KEYBOARD_DEVICE = "KB_MOUSE_DEFAULT"
DEFAULT_ACTION_CATEGORY = "ALL"
DEFAULT_MOD_VERSION = "1.0.0.0"


def resolve_image(record: ModRecord, name: str | None) -> str | None:
    """Normalised image name if the package actually contains it."""
    if not name:
        return None
    candidate = normalize_image_name(name)
    if candidate in record.file_detail.image_dds:
        return candidate
    return None


def read_mod_desc(record: ModRecord, mod_desc: etree._Element) -> None:
    desc = record.mod_desc

    raw_desc_version = mod_desc.get("descVersion")
    desc_version = to_uint(raw_desc_version)
    if desc_version is None:
        if raw_desc_version is not None:
            _log.debug("Unparsable descVersion %r", raw_desc_version)
        record.add_issue(IssueCode.DESC_VERSION_OLD_OR_MISSING)
    else:
        desc.desc_version = desc_version

    version = first_text(mod_desc, "version")
    if version is None:
        record.add_issue(IssueCode.NO_MOD_VERSION)
    else:
        desc.version = version.strip() or DEFAULT_MOD_VERSION

    author = first_text(mod_desc, "author")
    if author and author.strip():
        desc.author = author.strip()

    desc.multi_player = is_true(first_attr(mod_desc, "multiplayer", "supported"))
    desc.store_items = sum(1 for _ in mod_desc.iter("storeItem"))
    desc.map_config_file = first_attr(mod_desc, "map", "configFilename")

    for dependency in mod_desc.iter("dependency"):
        desc.depend.append((dependency.text or "").strip() or PLACEHOLDER)

    if first(mod_desc, "productId") is not None:
        record.add_issue(IssueCode.LIKELY_PIRACY)

    desc.icon_file_name = resolve_image(record, first_text(mod_desc, "iconFilename"))
    if desc.icon_file_name is None:
        record.add_issue(IssueCode.NO_MOD_ICON)

    _read_actions(record, mod_desc)
    _read_localized(record, mod_desc, "title", record.l10n.title, "--")
    _read_localized(record, mod_desc, "description", record.l10n.description, "")


def _read_actions(record: ModRecord, mod_desc: etree._Element) -> None:
    desc = record.mod_desc
    for action in mod_desc.iter("action"):
        name = action.get("name")
        if name is not None:
            desc.actions[name] = action.get("category", DEFAULT_ACTION_CATEGORY)

    for binding_set in mod_desc.iter("actionBinding"):
        name = binding_set.get("action")
        if name is None:
            continue
        desc.binds[name] = [
            b.get("input")
            for b in children(binding_set, "binding")
            if b.get("device") == KEYBOARD_DEVICE and b.get("input") is not None
        ]


def _read_localized(
    record: ModRecord,
    mod_desc: etree._Element,
    tag: str,
    target: dict[str, str],
    empty: str,
) -> None:
    node = first(mod_desc, tag)
    if node is None:
        record.add_issue(IssueCode.L10N_NOT_SET)
        return

    languages = children(node)
    if not languages:
        # Bare text, the game shows it to everyone
        target["en"] = (node.text or empty).strip() or empty
        record.add_issue(IssueCode.L10N_NOT_SET)
        return

    for lang in languages:
        target[lang.tag] = (lang.text or empty).strip() or empty
