"""
Crop calendar, weather and overview image for map mods.

A map's config XML points at three support files:

* ``fruitTypes``  - growth state limits per crop
* ``growth``      - per-period growth instructions per crop
* ``environment`` - latitude and seasonal temperatures

Each may be a file inside the mod or a ``$data/...`` path into the base game.
Base game references (and anything missing or unreadable) are answered from
:mod:`base_game_data`.

Decoding the growth file
------------------------
Each ``<fruit>`` holds up to twelve ``<period index="N">`` elements, visited in
document order with one running growth state per fruit (starting at 0)::

    <period index="3" plantingAllowed="true">
        <update range="1-4" add="1"/>      state = max(state, 4 + 1)
        <update range="7" set="4"/>        state = 7 (die-back), adds ignored
    </period>

A ``set`` update whose range end fits within the crop's growth states resets
the state and marks the period as a die-back; every ``add`` update in a
die-back period is ignored, even one that came before the ``set``.  After the
updates the period is harvestable when the state lies inside the crop's
``[min_harvest, max_harvest]`` window.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from lxml import etree

from base_game_data import (
    BG_CROP_TYPES_BY_NAME,
    BG_CROP_WEATHER,
    BG_CROPS,
    DEFAULT_WEATHER_KEY,
    SKIP_CROP_TYPES,
    CropTypeDefinition,
)
from mod_archive import PackageHandle
from mod_desc import resolve_image
from mod_record import CropCalendar, ModRecord, SeasonTemperature
from thumbnails import convert_map_image
from xml_helpers import children, first, first_text, parse_xml, to_float, to_int

_log = logging.getLogger(__name__)

BASE_GAME_PREFIX = "$data"
DEFAULT_GROWTH_VALUE = 20
MIN_TEMP_SEED = 127
MAX_TEMP_SEED = -127

_MAP_KEY_RE = re.compile(r"(map[A-Z][A-Za-z]+)")


@dataclass
class MapReferences:
    """Support files named by a map config.  None means base game or absent."""

    fruit_types: str | None = None
    growth: str | None = None
    environment: str | None = None
    base_game_key: str | None = None


# ── Map config ────────────────────────────────────────────────────────


def local_reference(map_config: etree._Element, tag: str) -> str | None:
    """``filename`` of the first *tag*, unless it points into the base game."""
    node = first(map_config, tag)
    if node is None:
        return None
    filename = node.get("filename")
    if not filename or filename.startswith(BASE_GAME_PREFIX):
        return None
    return filename


def base_game_key(map_config: etree._Element) -> str | None:
    """``mapUS`` for ``$data/maps/mapUS/environment.xml``, else None."""
    node = first(map_config, "environment")
    if node is None:
        return None
    filename = node.get("filename")
    if not filename or not filename.startswith(BASE_GAME_PREFIX):
        return None
    found = _MAP_KEY_RE.search(filename)
    return found.group(1) if found else None


def read_map_references(map_config: etree._Element) -> MapReferences:
    return MapReferences(
        fruit_types=local_reference(map_config, "fruitTypes"),
        growth=local_reference(map_config, "growth"),
        environment=local_reference(map_config, "environment"),
        base_game_key=base_game_key(map_config),
    )


# ── Weather ───────────────────────────────────────────────────────────


def base_game_weather(key: str | None) -> dict[str, SeasonTemperature]:
    table = BG_CROP_WEATHER.get(key or DEFAULT_WEATHER_KEY)
    if table is None:
        _log.debug("No base game weather for %s, using %s", key, DEFAULT_WEATHER_KEY)
        table = BG_CROP_WEATHER[DEFAULT_WEATHER_KEY]
    return {season: SeasonTemperature(min=lo, max=hi) for season, (lo, hi) in table.items()}


def _temperature(value: str | None, fallback: int) -> int:
    number = to_int(value)
    return fallback if number is None else number


def read_weather(environment: etree._Element) -> tuple[dict[str, SeasonTemperature], bool]:
    """Seasonal (min, max) temperatures and whether the map is southern."""
    latitude = to_float(first_text(environment, "latitude"))
    is_south = latitude is not None and latitude < 0

    weather: dict[str, SeasonTemperature] = {}
    for season in environment.iter("season"):
        name = season.get("name")
        if name is None:
            continue
        low, high = MIN_TEMP_SEED, MAX_TEMP_SEED
        for variation in season.iter("variation"):
            if variation.get("minTemperature") is None or variation.get("maxTemperature") is None:
                continue
            low = min(low, _temperature(variation.get("minTemperature"), MIN_TEMP_SEED))
            high = max(high, _temperature(variation.get("maxTemperature"), MAX_TEMP_SEED))
        weather[name] = SeasonTemperature(min=low, max=high)
    return weather, is_south


# ── Crops ─────────────────────────────────────────────────────────────


def base_game_calendars() -> list[CropCalendar]:
    return [
        CropCalendar(
            name=crop.name,
            growth_time=crop.growth_time,
            harvest_periods=crop.harvest_periods,
            plant_periods=crop.plant_periods,
        )
        for crop in BG_CROPS
    ]


def _child_int(node: etree._Element, tag: str, attr: str) -> int | None:
    for child in children(node, tag):
        if child.get(attr) is not None:
            return to_int(child.get(attr))
    return None


def read_fruit_types(fruit_types: etree._Element) -> dict[str, CropTypeDefinition]:
    """Growth limits keyed by lowercased fruit name."""
    found: dict[str, CropTypeDefinition] = {}
    for node in fruit_types.iter("fruitType"):
        name = node.get("name", "unknown").lower()
        if name in SKIP_CROP_TYPES:
            continue

        max_harvest = _child_int(node, "harvest", "maxHarvestingGrowthState")
        min_harvest = _child_int(node, "harvest", "minHarvestingGrowthState")
        states = _child_int(node, "growth", "numGrowthStates")

        prep_min = _child_int(node, "preparing", "minGrowthState")
        prep_max = _child_int(node, "preparing", "maxGrowthState")
        if prep_min is not None:
            min_harvest = prep_min
        if prep_max is not None:
            max_harvest = prep_max

        found[name] = CropTypeDefinition(
            name=name,
            states=DEFAULT_GROWTH_VALUE if states is None else states,
            min_harvest=DEFAULT_GROWTH_VALUE if min_harvest is None else min_harvest,
            max_harvest=DEFAULT_GROWTH_VALUE if max_harvest is None else max_harvest,
        )
    return found


def decode_max_range(value: str | None) -> int:
    """Upper end of a growth range: ``"10-15"`` -> 15, ``"7"`` -> 7, junk -> 0."""
    if value is None:
        return 0
    if "-" in value:
        value = value.split("-", 1)[1]
    number = to_int(value)
    return 0 if number is None or number < 0 else number


def decode_fruit(fruit: etree._Element, definition: CropTypeDefinition) -> CropCalendar:
    calendar = CropCalendar(name=definition.name, growth_time=definition.states)
    state = 0

    for period in children(fruit, "period"):
        index = to_int(period.get("index"))
        if index is None or not 1 <= index <= 12:
            continue

        if period.get("plantingAllowed") == "true" and index not in calendar.plant_periods:
            calendar.plant_periods.append(index)

        die_back = False
        for update in children(period, "update"):
            if update.get("set") is not None:
                candidate = decode_max_range(update.get("range"))
                if candidate <= definition.states:
                    state = candidate
                    die_back = True
            if not die_back and update.get("add") is not None:
                grown = decode_max_range(update.get("range")) + (to_int(update.get("add")) or 0)
                state = max(state, grown)

        if definition.min_harvest <= state <= definition.max_harvest and index not in calendar.harvest_periods:
            calendar.harvest_periods.append(index)

    return calendar


def decode_growth(
    growth: etree._Element, fruit_types: dict[str, CropTypeDefinition]
) -> list[CropCalendar]:
    calendars = []
    for fruit in growth.iter("fruit"):
        name = fruit.get("name", "unknown").lower()
        if name in SKIP_CROP_TYPES:
            continue
        definition = fruit_types.get(name)
        if definition is None:
            _log.debug("Growth entry %s has no fruit type, skipped", name)
            continue
        calendars.append(decode_fruit(fruit, definition))
    return calendars


# ── Driver ────────────────────────────────────────────────────────────


def _read_document(handle: PackageHandle, name: str | None) -> etree._Element | None:
    if name is None:
        return None
    try:
        data = handle.read_bytes(name)
    except FileNotFoundError:
        _log.debug("Map support file %s not found", name)
        return None
    return parse_xml(data, label=name)


def read_map_basics(record: ModRecord, handle: PackageHandle, convert_images: bool = True) -> None:
    """Fill crop calendar, weather, hemisphere and image for a map mod."""
    desc = record.mod_desc
    if not desc.map_config_file:
        return

    refs = MapReferences()
    map_config = _read_document(handle, desc.map_config_file)
    if map_config is not None:
        refs = read_map_references(map_config)
        image = resolve_image(record, map_config.get("imageFilename"))
        if image is not None and convert_images:
            try:
                desc.map_image = convert_map_image(handle.read_bytes(image))
            except FileNotFoundError:
                _log.debug("Map image %s unreadable", image)

    desc.map_custom_crop = refs.fruit_types is not None
    desc.map_custom_grow = refs.growth is not None
    desc.map_custom_env = refs.environment is not None

    # Weather
    if refs.base_game_key is not None:
        desc.crop_weather = base_game_weather(refs.base_game_key)
    else:
        environment = _read_document(handle, refs.environment)
        if environment is None:
            desc.crop_weather = base_game_weather(DEFAULT_WEATHER_KEY)
        else:
            desc.crop_weather, desc.map_is_south = read_weather(environment)

    # Crops
    if refs.growth is None:
        desc.crop_info = base_game_calendars()
        return

    fruit_types = dict(BG_CROP_TYPES_BY_NAME)
    custom_types = _read_document(handle, refs.fruit_types)
    if custom_types is not None:
        fruit_types.update(read_fruit_types(custom_types))

    growth = _read_document(handle, refs.growth)
    if growth is None:
        desc.crop_info = base_game_calendars()
    else:
        desc.crop_info = decode_growth(growth, fruit_types)
