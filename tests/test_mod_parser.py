"""
End-to-end tests for the mod check pipeline.
"""

import json

import pytest

from mod_issues import IssueCode
from mod_parser import ModParser, ParserOptions, parse_mod
from tests.conftest import (
    basic_mod_members,
    image_bytes,
    make_folder,
    make_zip,
    mod_desc_xml,
    oversized_png_header,
)


def test_good_mod(basic_zip):
    record = parse_mod(basic_zip)
    assert record.can_not_use is False
    assert record.issues == set()
    assert record.badge_array == ["pconly"]
    assert record.file_detail.short_name == "FS22_TestMod"
    assert record.file_detail.file_size == basic_zip.stat().st_size
    assert record.mod_desc.script_files == 1
    assert record.mod_desc.icon_image.startswith("data:image/webp;base64, ")
    assert record.mod_desc.crop_info is None


def test_garbage_file(mods_dir):
    path = mods_dir / "FAILURE_Garbage_File.txt"
    path.write_text("not a mod")
    record = parse_mod(path)
    assert record.issues == {IssueCode.GARBAGE_FILE, IssueCode.NAME_INVALID}
    assert record.can_not_use is True
    assert record.badge_array == ["broken", "notmod"]


def test_copy_of_a_mod(mods_dir):
    record = parse_mod(make_zip(mods_dir / "FS22_TestMod - Copy.zip", basic_mod_members()))
    assert record.issues == {IssueCode.LIKELY_COPY, IssueCode.NAME_INVALID}
    assert record.file_detail.copy_name == "FS22_TestMod"
    assert record.can_not_use is True


def test_unreadable_zip(mods_dir):
    path = mods_dir / "FS22_Corrupt.zip"
    path.write_bytes(b"PK\x03\x04 but not really")
    record = parse_mod(path)
    assert record.issues == {IssueCode.UNREADABLE_ZIP}
    assert record.can_not_use is True
    assert record.badge_array == ["broken", "notmod"]


def test_zip_pack(mods_dir):
    path = make_zip(mods_dir / "FS22_ModPack.zip", {
        "FS22_One.zip": b"x" * 10,
        "FS22_Two.zip": b"y" * 25,
    })
    record = parse_mod(path)
    assert record.issues == {IssueCode.LIKELY_ZIP_PACK}
    assert record.can_not_use is True
    assert record.file_detail.is_mod_pack is True
    assert [(z.name, z.size) for z in record.file_detail.zip_files] == [("FS22_One.zip", 10), ("FS22_Two.zip", 25)]


def test_save_game(mods_dir):
    path = make_zip(mods_dir / "savegame1.zip", {
        "careerSavegame.xml": "<careerSavegame><mod modName='FS22_TestMod' version='1.0'/></careerSavegame>",
    })
    record = parse_mod(path, ParserOptions(include_save_game=True))
    assert record.issues == {IssueCode.LIKELY_SAVEGAME}
    assert record.can_not_use is True
    assert record.file_detail.is_save_game is True
    assert record.badge_array == ["notmod", "savegame"]
    assert "FS22_TestMod" in record.include_save_game.mods


def test_save_game_not_parsed_by_default(mods_dir):
    path = make_zip(mods_dir / "savegame1.zip", {"careerSavegame.xml": "<careerSavegame/>"})
    assert parse_mod(path).include_save_game is None


def test_missing_mod_desc(mods_dir):
    record = parse_mod(make_zip(mods_dir / "FS22_NoDesc.zip", {"readme.txt": "hello"}))
    assert record.issues == {IssueCode.MODDESC_MISSING}
    assert record.can_not_use is True


def test_broken_mod_desc(mods_dir):
    record = parse_mod(make_zip(mods_dir / "FS22_BadDesc.zip", {"modDesc.xml": "<modDesc><title>"}))
    assert record.issues == {IssueCode.MODDESC_PARSE_ERROR}
    assert record.badge_array == ["broken"]


def test_missing_version_is_not_fatal(mods_dir):
    record = parse_mod(make_zip(mods_dir / "FS22_NoVersion.zip", basic_mod_members(version=None)))
    assert IssueCode.NO_MOD_VERSION in record.issues
    assert record.mod_desc.version == "--"
    assert record.can_not_use is False
    assert "problem" in record.badge_array


def test_unpacked_folder(mods_dir):
    record = parse_mod(make_folder(mods_dir / "FS22_TestMod", basic_mod_members()))
    assert record.file_detail.is_folder is True
    assert record.issues == {IssueCode.NO_MULTIPLAYER_UNZIPPED}
    assert record.can_not_use is False
    assert record.badge_array == ["folder", "noMP", "pconly"]


def test_folder_with_dangling_link_keeps_its_icon(mods_dir):
    folder = make_folder(mods_dir / "FS22_TestMod", basic_mod_members())
    try:
        (folder / "stale.dds").symlink_to(folder / "does_not_exist.dds")
    except OSError:
        pytest.skip("symlinks not available")
    record = parse_mod(folder)
    assert record.file_detail.image_dds == ["icon.dds"]
    assert record.mod_desc.icon_file_name == "icon.dds"
    assert IssueCode.NO_MOD_ICON not in record.issues


def test_malicious_script(mods_dir):
    members = basic_mod_members()
    members["scripts/evil.lua"] = "local f = g_currentModDirectory\ngetfenv(0).deleteFolder(f)\n"
    record = parse_mod(make_zip(mods_dir / "FS22_Evil.zip", members))
    assert IssueCode.MALICIOUS_CODE in record.issues
    assert "malware" in record.badge_array
    assert record.can_not_use is False


def test_skip_mod_icons(basic_zip):
    record = parse_mod(basic_zip, ParserOptions(skip_mod_icons=True))
    assert record.mod_desc.icon_file_name == "icon.dds"
    assert record.mod_desc.icon_image is None


def test_oversized_icons_do_not_stop_the_check(mods_dir):
    members = basic_mod_members(extra='<maps><map id="M" configFilename="maps/map.xml"/></maps>')
    members["icon.dds"] = oversized_png_header()
    members["maps/map.xml"] = '<map imageFilename="maps/overview.dds"/>'
    members["maps/overview.dds"] = oversized_png_header()
    record = parse_mod(make_zip(mods_dir / "FS22_HugeIcon.zip", members))
    assert record.can_not_use is False
    assert record.issues == set()
    assert record.mod_desc.icon_file_name == "icon.dds"
    assert record.mod_desc.icon_image is None
    assert record.mod_desc.map_image is None
    assert record.mod_desc.crop_info is not None


def test_map_mod_uses_base_game_calendar(mods_dir):
    members = basic_mod_members(extra='<maps><map id="M" configFilename="maps/map.xml"/></maps>')
    members["maps/map.xml"] = '<map imageFilename="maps/overview.dds"/>'
    members["maps/overview.dds"] = image_bytes((128, 128))
    path = make_zip(mods_dir / "FS22_Map.zip", members)

    record = parse_mod(path)
    wheat = next(c for c in record.mod_desc.crop_info if c.name == "wheat")
    assert (wheat.harvest_periods, wheat.plant_periods, wheat.growth_time) == ([5, 6], [7, 8], 8)
    assert set(record.mod_desc.crop_weather) == {"spring", "summer", "autumn", "winter"}
    assert record.mod_desc.map_image is not None

    no_maps = parse_mod(path, ParserOptions(include_map_data=False))
    assert no_maps.mod_desc.crop_info is None
    assert no_maps.mod_desc.map_config_file == "maps/map.xml"


def test_include_detail(mods_dir):
    extra = '<storeItems><storeItem xmlFilename="missing.xml"/></storeItems>'
    path = make_zip(mods_dir / "FS22_Items.zip", basic_mod_members(extra=extra))
    record = parse_mod(path, ParserOptions(include_mod_detail=True, skip_detail_icons=True))
    assert record.include_detail is not None
    assert record.detail_icon_loaded is False
    assert record.mod_desc.store_items == 1

    record = parse_mod(path, ParserOptions(include_mod_detail=True))
    assert record.detail_icon_loaded is True
    assert parse_mod(path).include_detail is None


def test_uuid_is_stable(basic_zip):
    first, second = parse_mod(basic_zip), parse_mod(basic_zip)
    assert first.uuid == second.uuid
    assert len(first.uuid) == 32


def test_pipeline_is_idempotent(basic_zip):
    parser = ModParser()
    first = parser.parse(basic_zip).model_dump(by_alias=True)
    second = parser.parse(basic_zip).model_dump(by_alias=True)
    assert first == second


def test_log_callback(basic_zip):
    messages = []
    ModParser(log_callback=messages.append).parse(basic_zip)
    assert messages == ["FS22_TestMod.zip: pconly"]


def test_json_output(mods_dir):
    path = make_zip(mods_dir / "FS22_Json.zip", basic_mod_members(title="Plain"))
    data = json.loads(parse_mod(path).to_json())
    assert data["canNotUse"] is False
    assert data["badgeArray"] == ["pconly", "problem"]
    assert data["issues"] == ["PERF_L10N_NOT_SET"]
    assert data["fileDetail"]["shortName"] == "FS22_Json"
    assert data["fileDetail"]["imageDDS"] == ["icon.dds"]
    assert data["fileDetail"]["i3dFiles"] == []
    assert data["modDesc"]["descVersion"] == 72
    assert data["l10n"]["title"] == {"en": "Plain"}
    assert data["includeDetail"] is None


@pytest.mark.parametrize("name", ["FS22_Mod.rar", "FS22_Mod.7z"])
def test_other_archives_are_not_opened(mods_dir, name):
    path = mods_dir / name
    path.write_bytes(b"Rar!\x1a\x07\x00")
    record = parse_mod(path)
    assert record.issues == {IssueCode.UNSUPPORTED_ARCHIVE, IssueCode.NAME_INVALID}
