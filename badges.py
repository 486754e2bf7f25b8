"""Reduce a record's issue set to the short badge list shown to users."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from mod_issues import ADVISORY_ISSUES, FATAL_ISSUES, NOT_MOD_ISSUES, IssueCode


@dataclass(frozen=True)
class ModBadges:
    broken: bool = False
    folder: bool = False
    malware: bool = False
    no_mp: bool = False
    notmod: bool = False
    pconly: bool = False
    problem: bool = False
    savegame: bool = False

    def names(self) -> list[str]:
        """Badge names that are set, in lexical order."""
        flags = {
            "broken": self.broken,
            "folder": self.folder,
            "malware": self.malware,
            "noMP": self.no_mp,
            "notmod": self.notmod,
            "pconly": self.pconly,
            "problem": self.problem,
            "savegame": self.savegame,
        }
        return sorted(name for name, on in flags.items() if on)


def classify_badges(
    issues: Iterable[IssueCode],
    *,
    is_folder: bool,
    is_save_game: bool,
    multiplayer: bool,
    script_files: int,
) -> ModBadges:
    issues = set(issues)
    notmod = not issues.isdisjoint(NOT_MOD_ISSUES)
    pconly = script_files > 0

    if is_save_game:
        # A save game is never "broken" in the mod sense
        return ModBadges(notmod=notmod, pconly=pconly, savegame=True)

    broken = not issues.isdisjoint(FATAL_ISSUES)
    return ModBadges(
        broken=broken,
        folder=is_folder,
        malware=IssueCode.MALICIOUS_CODE in issues,
        no_mp=not notmod and not broken and (is_folder or not multiplayer),
        notmod=notmod,
        pconly=pconly,
        problem=not issues.isdisjoint(ADVISORY_ISSUES),
    )
