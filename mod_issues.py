"""
Issue codes raised while checking a mod package.

Every finding the checker can make is a member of :class:`IssueCode`.  The
string written to the JSON record is looked up in :data:`ISSUE_TOKENS` rather
than derived from the member name, so members may be renamed freely but the
tokens must never change -- downstream tools key on them.

The tier sets below are not exclusive.  They exist only so the badge
classifier can answer "is anything broken / a problem / not a mod".
"""

from __future__ import annotations

from enum import Enum


class IssueCode(Enum):
    GARBAGE_FILE = "garbage_file"
    LIKELY_COPY = "likely_copy"
    LIKELY_SAVEGAME = "likely_savegame"
    LIKELY_ZIP_PACK = "likely_zip_pack"
    NAME_INVALID = "name_invalid"
    NAME_STARTS_DIGIT = "name_starts_digit"
    UNREADABLE_ZIP = "unreadable_zip"
    UNSUPPORTED_ARCHIVE = "unsupported_archive"

    LIKELY_PIRACY = "likely_piracy"
    MALICIOUS_CODE = "malicious_code"
    NO_MULTIPLAYER_UNZIPPED = "no_multiplayer_unzipped"

    MODDESC_DAMAGED = "moddesc_damaged"
    MODDESC_MISSING = "moddesc_missing"
    NO_MOD_ICON = "no_mod_icon"
    NO_MOD_VERSION = "no_mod_version"
    MODDESC_PARSE_ERROR = "moddesc_parse_error"
    DESC_VERSION_OLD_OR_MISSING = "desc_version_old_or_missing"

    SPACE_IN_FILE = "space_in_file"
    L10N_NOT_SET = "l10n_not_set"
    DDS_TOO_BIG = "dds_too_big"
    GDM_TOO_BIG = "gdm_too_big"
    I3D_TOO_BIG = "i3d_too_big"
    SHAPES_TOO_BIG = "shapes_too_big"
    XML_TOO_BIG = "xml_too_big"
    HAS_EXTRA = "has_extra"
    GRLE_TOO_MANY = "grle_too_many"
    PDF_TOO_MANY = "pdf_too_many"
    PNG_TOO_MANY = "png_too_many"
    TXT_TOO_MANY = "txt_too_many"

    @property
    def token(self) -> str:
        return ISSUE_TOKENS[self]


# Stable wire contract.  Add new codes at the end, never rename a token.
ISSUE_TOKENS: dict[IssueCode, str] = {
    IssueCode.GARBAGE_FILE: "FILE_ERROR_GARBAGE_FILE",
    IssueCode.LIKELY_COPY: "FILE_ERROR_LIKELY_COPY",
    IssueCode.LIKELY_SAVEGAME: "FILE_IS_A_SAVEGAME",
    IssueCode.LIKELY_ZIP_PACK: "FILE_ERROR_LIKELY_ZIP_PACK",
    IssueCode.NAME_INVALID: "FILE_ERROR_NAME_INVALID",
    IssueCode.NAME_STARTS_DIGIT: "FILE_ERROR_NAME_STARTS_DIGIT",
    IssueCode.UNREADABLE_ZIP: "FILE_ERROR_UNREADABLE_ZIP",
    IssueCode.UNSUPPORTED_ARCHIVE: "FILE_ERROR_UNSUPPORTED_ARCHIVE",
    IssueCode.LIKELY_PIRACY: "INFO_MIGHT_BE_PIRACY",
    IssueCode.MALICIOUS_CODE: "MALICIOUS_CODE",
    IssueCode.NO_MULTIPLAYER_UNZIPPED: "INFO_NO_MULTIPLAYER_UNZIPPED",
    IssueCode.MODDESC_DAMAGED: "MOD_ERROR_MODDESC_DAMAGED_RECOVERABLE",
    IssueCode.MODDESC_MISSING: "NOT_MOD_MODDESC_MISSING",
    IssueCode.NO_MOD_ICON: "MOD_ERROR_NO_MOD_ICON",
    IssueCode.NO_MOD_VERSION: "MOD_ERROR_NO_MOD_VERSION",
    IssueCode.MODDESC_PARSE_ERROR: "NOT_MOD_MODDESC_PARSE_ERROR",
    IssueCode.DESC_VERSION_OLD_OR_MISSING: "NOT_MOD_MODDESC_VERSION_OLD_OR_MISSING",
    IssueCode.SPACE_IN_FILE: "PERF_SPACE_IN_FILE",
    IssueCode.L10N_NOT_SET: "PERF_L10N_NOT_SET",
    IssueCode.DDS_TOO_BIG: "PERF_DDS_TOO_BIG",
    IssueCode.GDM_TOO_BIG: "PERF_GDM_TOO_BIG",
    IssueCode.I3D_TOO_BIG: "PERF_I3D_TOO_BIG",
    IssueCode.SHAPES_TOO_BIG: "PERF_SHAPES_TOO_BIG",
    IssueCode.XML_TOO_BIG: "PERF_XML_TOO_BIG",
    IssueCode.HAS_EXTRA: "PERF_HAS_EXTRA",
    IssueCode.GRLE_TOO_MANY: "PERF_GRLE_TOO_MANY",
    IssueCode.PDF_TOO_MANY: "PERF_PDF_TOO_MANY",
    IssueCode.PNG_TOO_MANY: "PERF_PNG_TOO_MANY",
    IssueCode.TXT_TOO_MANY: "PERF_TXT_TOO_MANY",
}


# ── Tiers ─────────────────────────────────────────────────────────────

FATAL_ISSUES: frozenset[IssueCode] = frozenset({
    IssueCode.GARBAGE_FILE,
    IssueCode.LIKELY_SAVEGAME,
    IssueCode.LIKELY_ZIP_PACK,
    IssueCode.NAME_INVALID,
    IssueCode.NAME_STARTS_DIGIT,
    IssueCode.UNREADABLE_ZIP,
    IssueCode.UNSUPPORTED_ARCHIVE,
    IssueCode.MODDESC_PARSE_ERROR,
    IssueCode.DESC_VERSION_OLD_OR_MISSING,
    IssueCode.MODDESC_MISSING,
})

ADVISORY_ISSUES: frozenset[IssueCode] = frozenset({
    IssueCode.LIKELY_PIRACY,
    IssueCode.MALICIOUS_CODE,
    IssueCode.NO_MOD_ICON,
    IssueCode.NO_MOD_VERSION,
    IssueCode.MODDESC_DAMAGED,
    IssueCode.SPACE_IN_FILE,
    IssueCode.L10N_NOT_SET,
    IssueCode.DDS_TOO_BIG,
    IssueCode.GDM_TOO_BIG,
    IssueCode.I3D_TOO_BIG,
    IssueCode.SHAPES_TOO_BIG,
    IssueCode.XML_TOO_BIG,
    IssueCode.HAS_EXTRA,
    IssueCode.GRLE_TOO_MANY,
    IssueCode.PDF_TOO_MANY,
    IssueCode.PNG_TOO_MANY,
    IssueCode.TXT_TOO_MANY,
})

NOT_MOD_ISSUES: frozenset[IssueCode] = frozenset({
    IssueCode.GARBAGE_FILE,
    IssueCode.LIKELY_SAVEGAME,
    IssueCode.LIKELY_ZIP_PACK,
    IssueCode.UNREADABLE_ZIP,
    IssueCode.UNSUPPORTED_ARCHIVE,
    IssueCode.MODDESC_MISSING,
})

INFO_ISSUES: frozenset[IssueCode] = frozenset({
    IssueCode.LIKELY_COPY,
    IssueCode.LIKELY_PIRACY,
    IssueCode.MALICIOUS_CODE,
    IssueCode.NO_MULTIPLAYER_UNZIPPED,
})


def issue_from_token(token: str) -> IssueCode:
    """Reverse lookup, mainly for reading records back in."""
    for code, tok in ISSUE_TOKENS.items():
        if tok == token:
            return code
    raise ValueError(f"Unknown issue token {token!r}")
