"""
The diagnostic record produced for one mod package.

All models serialize with lower-camel-case keys (``model_dump(by_alias=True)``)
so the JSON matches what the mod manager front-end already reads.  Issues are
written as their stable wire tokens and badges are always derived from the
current issue set, never stored.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from badges import ModBadges, classify_badges
from mod_detail import ModDetail
from mod_issues import FATAL_ISSUES, IssueCode, issue_from_token
from savegame import SaveGameRecord

_log = logging.getLogger(__name__)

PLACEHOLDER = "--"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ZipPackFile(WireModel):
    """One archive found inside a pack of mods."""

    name: str
    size: int


class CropCalendar(WireModel):
    """Plant and harvest periods (1-12) for one crop on a map."""

    name: str
    growth_time: int
    harvest_periods: list[int] = Field(default_factory=list)
    plant_periods: list[int] = Field(default_factory=list)


class SeasonTemperature(WireModel):
    min: int
    max: int


class ModFile(WireModel):
    copy_name: str | None = None
    extra_files: list[str] = Field(default_factory=list)
    file_date: str = "1970-01-01T00:00:00Z"
    file_size: int = 0
    full_path: str
    i3d_files: list[str] = Field(default_factory=list, alias="i3dFiles")
    image_dds: list[str] = Field(default_factory=list, alias="imageDDS")
    image_non_dds: list[str] = Field(default_factory=list, alias="imageNonDDS")
    is_folder: bool = False
    is_save_game: bool = False
    is_mod_pack: bool = False
    png_texture: list[str] = Field(default_factory=list)
    short_name: str
    space_files: list[str] = Field(default_factory=list)
    too_big_files: list[str] = Field(default_factory=list)
    zip_files: list[ZipPackFile] = Field(default_factory=list)


class ModDesc(WireModel):
    actions: dict[str, str] = Field(default_factory=dict)
    binds: dict[str, list[str]] = Field(default_factory=dict)
    author: str = PLACEHOLDER
    script_files: int = 0
    store_items: int = 0
    crop_info: list[CropCalendar] | None = None
    crop_weather: dict[str, SeasonTemperature] | None = None
    depend: list[str] = Field(default_factory=list)
    desc_version: int = 0
    icon_file_name: str | None = None
    icon_image: str | None = None
    map_config_file: str | None = None
    map_custom_env: bool = False
    map_custom_crop: bool = False
    map_custom_grow: bool = False
    map_is_south: bool = False
    map_image: str | None = None
    multi_player: bool = False
    version: str = PLACEHOLDER


def _placeholder_l10n() -> dict[str, str]:
    return {"en": PLACEHOLDER}


class ModL10N(WireModel):
    title: dict[str, str] = Field(default_factory=_placeholder_l10n)
    description: dict[str, str] = Field(default_factory=_placeholder_l10n)


class ModRecord(WireModel):
    can_not_use: bool = True
    current_collection: str | None = None
    detail_icon_loaded: bool = False
    file_detail: ModFile
    issues: set[IssueCode] = Field(default_factory=set)
    include_detail: ModDetail | None = None
    include_save_game: SaveGameRecord | None = None
    l10n: ModL10N = Field(default_factory=ModL10N, alias="l10n")
    md5_sum: str | None = None
    mod_desc: ModDesc = Field(default_factory=ModDesc)
    uuid: str

    @classmethod
    def new(cls, full_path: str, short_name: str, is_folder: bool) -> ModRecord:
        return cls(
            file_detail=ModFile(full_path=full_path, short_name=short_name, is_folder=is_folder),
            uuid=hashlib.md5(full_path.encode("utf-8")).hexdigest(),
        )

    # ── Issues ────────────────────────────────────────────────────────

    def add_issue(self, issue: IssueCode) -> None:
        self.issues.add(issue)

    def add_fatal(self, issue: IssueCode) -> None:
        if issue not in FATAL_ISSUES:
            _log.debug("%s recorded as fatal but is not in the fatal tier", issue.token)
        self.issues.add(issue)
        self.can_not_use = True

    def has_issue(self, issue: IssueCode) -> bool:
        return issue in self.issues

    @field_validator("issues", mode="before")
    @classmethod
    def _issues_from_tokens(cls, v: Any) -> Any:
        if isinstance(v, (list, set, tuple, frozenset)):
            return {issue_from_token(i) if isinstance(i, str) and i.isupper() else i for i in v}
        return v

    @field_serializer("issues")
    def _issues_as_tokens(self, issues: set[IssueCode]) -> list[str]:
        return sorted(i.token for i in issues)

    # ── Badges ────────────────────────────────────────────────────────

    @property
    def badges(self) -> ModBadges:
        return classify_badges(
            self.issues,
            is_folder=self.file_detail.is_folder,
            is_save_game=self.file_detail.is_save_game,
            multiplayer=self.mod_desc.multi_player,
            script_files=self.mod_desc.script_files,
        )

    @computed_field(alias="badgeArray")
    @property
    def badge_array(self) -> list[str]:
        return self.badges.names()

    # ── Output ────────────────────────────────────────────────────────

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_json_pretty(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
