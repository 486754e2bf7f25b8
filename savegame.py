"""
Read the farms and mods out of a save game folder or archive.

Save games are not mods, but users drop them into the mods folder often
enough that the checker reports what is inside: which farms exist and which
mods each farm's vehicles and placeables come from.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from mod_archive import PackageHandle, PackageUnreadableError, open_package
from xml_helpers import first_text, parse_xml, to_float, to_int

_log = logging.getLogger(__name__)

UNOWNED_FARM_ID = 0
UNOWNED_FARM_NAME = "--unowned--"


class SaveError(Enum):
    FILE_UNREADABLE = "SAVE_ERROR_UNREADABLE"
    FARMS_MISSING = "SAVE_ERROR_MISSING_FARMS"
    FARMS_PARSE_ERROR = "SAVE_ERROR_PARSE_FARMS"
    PLACEABLE_MISSING = "SAVE_ERROR_MISSING_PLACABLE"
    PLACEABLE_PARSE_ERROR = "SAVE_ERROR_PARSE_PLACABLE"
    VEHICLE_MISSING = "SAVE_ERROR_MISSING_VEHICLE"
    VEHICLE_PARSE_ERROR = "SAVE_ERROR_PARSE_VEHICLE"
    CAREER_MISSING = "SAVE_ERROR_MISSING_CAREER"
    CAREER_PARSE_ERROR = "SAVE_ERROR_PARSE_CAREER"


class _SaveModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SaveGameFarm(_SaveModel):
    name: str
    cash: int = 0
    loan: int = 0
    color: int = 1


class SaveGameMod(_SaveModel):
    version: str = "0"
    title: str = "--"
    farms: set[int] = Field(default_factory=set)

    @field_serializer("farms")
    def _sorted_farms(self, farms: set[int]) -> list[int]:
        return sorted(farms)


def _default_farms() -> dict[int, SaveGameFarm]:
    return {UNOWNED_FARM_ID: SaveGameFarm(name=UNOWNED_FARM_NAME)}


class SaveGameRecord(_SaveModel):
    error_list: set[SaveError] = Field(default_factory=set)
    farms: dict[int, SaveGameFarm] = Field(default_factory=_default_farms)
    is_valid: bool = True
    map_mod: str | None = None
    mods: dict[str, SaveGameMod] = Field(default_factory=dict)
    single_farm: bool = True

    def add_issue(self, issue: SaveError) -> None:
        self.is_valid = False
        self.error_list.add(issue)

    @field_serializer("error_list")
    def _sorted_errors(self, errors: set[SaveError]) -> list[str]:
        return sorted(e.value for e in errors)

    def to_json_pretty(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def _load(
    handle: PackageHandle,
    name: str,
    record: SaveGameRecord,
    missing: SaveError,
    broken: SaveError,
) -> etree._Element | None:
    try:
        data = handle.read_bytes(name)
    except FileNotFoundError:
        record.add_issue(missing)
        return None
    root = parse_xml(data, label=name)
    if root is None:
        record.add_issue(broken)
    return root


def _money(value: str | None) -> int:
    number = to_float(value)
    return 0 if number is None else int(number)


def _read_career(record: SaveGameRecord, career: etree._Element) -> None:
    map_id = first_text(career, "mapId")
    if map_id and "." in map_id:
        # "FS22_SomeMap.SampleModMap" -> the mod that provides the map
        record.map_mod = map_id.split(".", 1)[0]

    for mod in career.iter("mod"):
        mod_name = mod.get("modName")
        if mod_name is None:
            continue
        record.mods[mod_name] = SaveGameMod(
            version=mod.get("version", "0"),
            title=mod.get("title", "--"),
        )


def _read_farms(record: SaveGameRecord, farms: etree._Element) -> None:
    for farm in farms.iter("farm"):
        farm_id = to_int(farm.get("farmId"))
        name = farm.get("name")
        if farm_id is None or name is None:
            continue
        record.farms[farm_id] = SaveGameFarm(
            name=name,
            cash=_money(farm.get("money")),
            loan=_money(farm.get("loan")),
            color=to_int(farm.get("color")) or 1,
        )


def _link_owners(record: SaveGameRecord, items: etree._Element, tag: str) -> None:
    for item in items.iter(tag):
        mod_name = item.get("modName")
        if mod_name is None:
            continue
        farm_id = to_int(item.get("farmId"))
        mod = record.mods.setdefault(mod_name, SaveGameMod())
        mod.farms.add(UNOWNED_FARM_ID if farm_id is None else farm_id)


def parse_open_file(handle: PackageHandle) -> SaveGameRecord:
    record = SaveGameRecord()

    career = _load(handle, "careerSavegame.xml", record, SaveError.CAREER_MISSING, SaveError.CAREER_PARSE_ERROR)
    if career is not None:
        _read_career(record, career)

    farms = _load(handle, "farms.xml", record, SaveError.FARMS_MISSING, SaveError.FARMS_PARSE_ERROR)
    if farms is not None:
        _read_farms(record, farms)

    vehicles = _load(handle, "vehicles.xml", record, SaveError.VEHICLE_MISSING, SaveError.VEHICLE_PARSE_ERROR)
    if vehicles is not None:
        _link_owners(record, vehicles, "vehicle")

    placeables = _load(
        handle, "placeables.xml", record, SaveError.PLACEABLE_MISSING, SaveError.PLACEABLE_PARSE_ERROR
    )
    if placeables is not None:
        _link_owners(record, placeables, "placeable")

    record.single_farm = sum(1 for farm_id in record.farms if farm_id != UNOWNED_FARM_ID) <= 1
    _log.debug(
        "Save game: %d farm(s), %d mod(s), errors=%s",
        len(record.farms), len(record.mods), sorted(e.value for e in record.error_list),
    )
    return record


def parse_savegame(path: str | Path) -> SaveGameRecord:
    """Open *path* (folder or zip) and read it as a save game."""
    try:
        handle = open_package(path)
    except PackageUnreadableError as exc:
        _log.warning("Could not open save game %s: %s", path, exc)
        record = SaveGameRecord()
        record.add_issue(SaveError.FILE_UNREADABLE)
        return record
    with handle:
        return parse_open_file(handle)
