"""
Store item, brand and translation detail for a mod.

Only run on request: it opens every store item XML the descriptor lists, so
it is much slower than the basic check.

Public API
----------
parse_open_file(handle, mod_desc, manifest, skip_icons=False) -> ModDetail
parse_detail(path, skip_icons=False) -> ModDetail
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from mod_archive import ManifestEntry, PackageHandle, PackageUnreadableError, open_package
from thumbnails import convert_mod_icon, normalize_image_name
from xml_helpers import children, first, first_text, parse_xml, to_float, to_uint

_log = logging.getLogger(__name__)

BASE_GAME_PREFIX = "$data"


class DetailError(Enum):
    FILE_UNREADABLE = "DETAIL_ERROR_UNREADABLE"
    MODDESC_MISSING = "DETAIL_ERROR_MISSING_MODDESC"
    BRAND_MISSING_ICON = "DETAIL_ERROR_MISSING_ICON"
    STORE_ITEM_MISSING = "DETAIL_ERROR_MISSING_ITEM"
    STORE_ITEM_BROKEN = "DETAIL_ERROR_PARSE_ITEM"


class _DetailModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModDetailBrand(_DetailModel):
    title: str
    icon_base: str | None = None
    icon_file: str | None = None


class VehicleSorting(_DetailModel):
    brand: str | None = None
    category: str | None = None
    combos: list[str] = Field(default_factory=list)
    name: str | None = None
    type_name: str | None = None
    type_description: str | None = None
    year: int | None = None


class VehicleSpecs(_DetailModel):
    functions: list[str] = Field(default_factory=list)
    joint_accepts: list[str] = Field(default_factory=list)
    joint_requires: list[str] = Field(default_factory=list)
    name: str = "--"
    price: int = 0
    specs: dict[str, int] = Field(default_factory=dict)
    weight: int = 0


class ModDetailVehicle(_DetailModel):
    icon_base: str | None = None
    icon_file: str | None = None
    master_type: str = "vehicle"
    sorting: VehicleSorting = Field(default_factory=VehicleSorting)
    specs: VehicleSpecs = Field(default_factory=VehicleSpecs)


class PlaceSorting(_DetailModel):
    category: str | None = None
    functions: list[str] = Field(default_factory=list)
    has_color: bool = False
    income_per_hour: int = 0
    name: str | None = None
    price: int = 0
    type_name: str | None = None


class ModDetailPlace(_DetailModel):
    icon_base: str | None = None
    icon_file: str | None = None
    master_type: str = "placeable"
    sorting: PlaceSorting = Field(default_factory=PlaceSorting)


class ModDetail(_DetailModel):
    brands: dict[str, ModDetailBrand] = Field(default_factory=dict)
    issues: set[DetailError] = Field(default_factory=set)
    item_brands: set[str] = Field(default_factory=set)
    item_categories: set[str] = Field(default_factory=set)
    l10n: dict[str, dict[str, str]] = Field(default_factory=dict, alias="l10n")
    placeables: dict[str, ModDetailPlace] = Field(default_factory=dict)
    vehicles: dict[str, ModDetailVehicle] = Field(default_factory=dict)

    @classmethod
    def fast_fail(cls, issue: DetailError) -> ModDetail:
        detail = cls()
        detail.add_issue(issue)
        return detail

    def add_issue(self, issue: DetailError) -> None:
        self.issues.add(issue)

    def add_lang(self, language: str, key: str, value: str) -> None:
        self.l10n.setdefault(language, {})[key.lower()] = value

    def add_brand(self, key: str, title: str | None) -> ModDetailBrand:
        brand = ModDetailBrand(title=title or key)
        self.brands[key] = brand
        return brand

    @field_serializer("issues")
    def _sorted_issues(self, issues: set[DetailError]) -> list[str]:
        return sorted(i.value for i in issues)

    @field_serializer("item_brands", "item_categories")
    def _sorted_names(self, names: set[str]) -> list[str]:
        return sorted(names)

    def to_json_pretty(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# ── Icons ─────────────────────────────────────────────────────────────


def _load_icon(handle: PackageHandle, reference: str | None) -> tuple[str | None, str | None, bool]:
    """(icon_base, icon_file, found) for an image reference."""
    if not reference:
        return None, None, True
    if reference.startswith(BASE_GAME_PREFIX):
        return reference, None, True
    try:
        data = handle.read_bytes(normalize_image_name(reference))
    except FileNotFoundError:
        return None, None, False
    return None, convert_mod_icon(data), True


# ── Translations and brands ───────────────────────────────────────────


def _read_languages(
    detail: ModDetail, handle: PackageHandle, mod_desc: etree._Element, manifest: list[ManifestEntry]
) -> None:
    """Embedded ``<l10n><text name=..><en>..</en></text></l10n>`` entries and
    ``<l10n filenamePrefix=".."/>`` files in either ``<text name text>`` or
    ``<e k v>`` style."""
    l10n = first(mod_desc, "l10n")
    if l10n is None:
        return

    for entry in children(l10n):
        key = entry.get("name")
        if key is None:
            continue
        for lang in children(entry):
            if lang.text is not None:
                detail.add_lang(lang.tag, key, lang.text)

    prefix = l10n.get("filenamePrefix")
    if not prefix:
        return
    prefix = prefix.replace("\\", "/")

    for file_entry in manifest:
        name = file_entry.name
        if file_entry.is_folder or not name.startswith(prefix) or not name.endswith(".xml"):
            continue
        try:
            root = parse_xml(handle.read_bytes(name), label=name)
        except FileNotFoundError:
            continue
        if root is None:
            continue
        lang_code = name[-6:-4]

        for text in root.iter("text"):
            if text.get("name") is not None and text.get("text") is not None:
                detail.add_lang(lang_code, text.get("name"), text.get("text"))
        for e in root.iter("e"):
            if e.get("k") is not None and e.get("v") is not None:
                detail.add_lang(lang_code, e.get("k"), e.get("v"))


def _read_brands(detail: ModDetail, handle: PackageHandle, mod_desc: etree._Element, skip_icons: bool) -> None:
    brands = first(mod_desc, "brands")
    if brands is None:
        return

    for node in children(brands, "brand"):
        name = node.get("name")
        if name is None:
            continue
        brand = detail.add_brand(name.upper(), node.get("title"))
        if skip_icons:
            continue
        brand.icon_base, brand.icon_file, found = _load_icon(handle, node.get("image"))
        if not found:
            detail.add_issue(DetailError.BRAND_MISSING_ICON)


# ── Store items ───────────────────────────────────────────────────────


def _texts(root: etree._Element, tag: str) -> list[str]:
    return [n.text.strip() for n in root.iter(tag) if n.text and n.text.strip()]


def _text_or_none(root: etree._Element, tag: str) -> str | None:
    text = first_text(root, tag)
    return text.strip() if text and text.strip() else None


def parse_vehicle(root: etree._Element, handle: PackageHandle, skip_icons: bool) -> ModDetailVehicle:
    vehicle = ModDetailVehicle()

    sorting = vehicle.sorting
    sorting.name = _text_or_none(root, "name")
    sorting.brand = _text_or_none(root, "brand")
    sorting.category = _text_or_none(root, "category")
    sorting.type_description = _text_or_none(root, "typeDesc")
    sorting.type_name = root.get("type")
    sorting.year = to_uint(first_text(root, "year"))
    sorting.combos = [n.get("xmlFilename") for n in root.iter("combination") if n.get("xmlFilename")]

    specs = vehicle.specs
    speed_limit = first(root, "speedLimit")
    if speed_limit is not None and to_uint(speed_limit.get("value")) is not None:
        specs.specs["speedLimit"] = to_uint(speed_limit.get("value"))
    spec_node = first(root, "specs")
    if spec_node is not None:
        for spec in children(spec_node):
            value = to_uint(spec.text)
            if spec.tag != "combination" and value is not None:
                specs.specs[spec.tag] = value

    specs.price = to_uint(first_text(root, "price")) or 0
    specs.name = sorting.name or "--"
    specs.functions = _texts(root, "function")
    specs.weight = int(sum(to_float(n.get("mass")) or 0 for n in root.iter("component")))
    specs.joint_accepts = sorted({n.get("jointType") for n in root.iter("attacherJoint") if n.get("jointType")})
    specs.joint_requires = sorted({n.get("jointType") for n in root.iter("inputAttacherJoint") if n.get("jointType")})

    if not skip_icons:
        vehicle.icon_base, vehicle.icon_file, _ = _load_icon(handle, first_text(root, "image"))
    return vehicle


def parse_placeable(root: etree._Element, handle: PackageHandle, skip_icons: bool) -> ModDetailPlace:
    place = ModDetailPlace()

    sorting = place.sorting
    sorting.category = _text_or_none(root, "category")
    sorting.income_per_hour = to_uint(first_text(root, "incomePerHour")) or 0
    sorting.name = _text_or_none(root, "name")
    sorting.price = to_uint(first_text(root, "price")) or 0
    sorting.type_name = root.get("type")
    sorting.has_color = sum(1 for _ in root.iter("color")) > 1
    sorting.functions = _texts(root, "function")

    if not skip_icons:
        place.icon_base, place.icon_file, _ = _load_icon(handle, first_text(root, "image"))
    return place


def parse_open_file(
    handle: PackageHandle,
    mod_desc: etree._Element,
    manifest: list[ManifestEntry],
    skip_icons: bool = False,
) -> ModDetail:
    """Read detail from an already opened package and parsed descriptor."""
    detail = ModDetail()

    _read_languages(detail, handle, mod_desc, manifest)
    _read_brands(detail, handle, mod_desc, skip_icons)

    for store_item in mod_desc.iter("storeItem"):
        file_name = store_item.get("xmlFilename")
        if file_name is None:
            continue
        try:
            data = handle.read_bytes(file_name.replace("\\", "/"))
        except FileNotFoundError:
            detail.add_issue(DetailError.STORE_ITEM_MISSING)
            continue
        root = parse_xml(data, label=file_name)
        if root is None:
            detail.add_issue(DetailError.STORE_ITEM_BROKEN)
            continue

        if root.tag == "vehicle":
            vehicle = parse_vehicle(root, handle, skip_icons)
            detail.vehicles[file_name] = vehicle
            if vehicle.sorting.brand:
                detail.item_brands.add(vehicle.sorting.brand)
            if vehicle.sorting.category:
                detail.item_categories.add(vehicle.sorting.category)
        elif root.tag == "placeable":
            place = parse_placeable(root, handle, skip_icons)
            detail.placeables[file_name] = place
            if place.sorting.category:
                detail.item_categories.add(place.sorting.category)
        else:
            _log.debug("Store item %s has unknown root <%s>", file_name, root.tag)

    return detail


def parse_detail(path: str | Path, skip_icons: bool = False) -> ModDetail:
    """Open *path* and read its detail without running the basic checks."""
    try:
        handle = open_package(path)
    except PackageUnreadableError as exc:
        _log.warning("Could not open %s: %s", path, exc)
        return ModDetail.fast_fail(DetailError.FILE_UNREADABLE)

    with handle:
        try:
            mod_desc = parse_xml(handle.read_bytes("modDesc.xml"), label="modDesc.xml")
        except FileNotFoundError:
            mod_desc = None
        if mod_desc is None:
            return ModDetail.fast_fail(DetailError.MODDESC_MISSING)
        return parse_open_file(handle, mod_desc, handle.list(), skip_icons)
