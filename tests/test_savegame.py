"""
Tests for save game reading.
"""

import json

from mod_archive import open_package
from savegame import SaveError, parse_open_file, parse_savegame
from tests.conftest import make_folder, make_zip

CAREER = """<?xml version="1.0" encoding="utf-8" standalone="no"?>
<careerSavegame revision="2" valid="true">
    <settings><mapId>FS22_BigMap.SampleModMap</mapId></settings>
    <mod modName="FS22_BigMap" title="Big Map" version="1.2.0.0" required="true" fileHash="abc"/>
    <mod modName="FS22_Tractor" title="Tractor" version="1.0.0.0" required="false" fileHash="def"/>
</careerSavegame>
"""

FARMS = """<farms>
    <farm farmId="1" name="My Farm" color="3" loan="50000.000000" money="123456.789"/>
    <farm farmId="2" name="Neighbour" color="5" loan="0" money="10"/>
</farms>
"""

VEHICLES = """<vehicles>
    <vehicle modName="FS22_Tractor" farmId="1" filename="tractor.xml"/>
    <vehicle modName="FS22_Tractor" farmId="2" filename="tractor.xml"/>
    <vehicle modName="FS22_Trailer" farmId="2" filename="trailer.xml"/>
    <vehicle farmId="1" filename="$data/vehicles/base.xml"/>
</vehicles>
"""

PLACEABLES = """<placeables>
    <placeable modName="FS22_Shed" filename="shed.xml"/>
</placeables>
"""

SAVE_MEMBERS = {
    "careerSavegame.xml": CAREER,
    "farms.xml": FARMS,
    "vehicles.xml": VEHICLES,
    "placeables.xml": PLACEABLES,
}


def test_full_save_game(tmp_path):
    record = parse_savegame(make_folder(tmp_path / "savegame1", SAVE_MEMBERS))

    assert record.is_valid
    assert record.error_list == set()
    assert record.map_mod == "FS22_BigMap"
    assert record.single_farm is False

    assert set(record.farms) == {0, 1, 2}
    assert record.farms[0].name == "--unowned--"
    assert (record.farms[1].name, record.farms[1].cash, record.farms[1].loan, record.farms[1].color) == (
        "My Farm", 123456, 50000, 3,
    )

    assert record.mods["FS22_BigMap"].title == "Big Map"
    assert record.mods["FS22_BigMap"].version == "1.2.0.0"
    assert record.mods["FS22_BigMap"].farms == set()
    assert record.mods["FS22_Tractor"].farms == {1, 2}
    # Items from mods the career file does not list still show up
    assert record.mods["FS22_Trailer"].farms == {2}
    assert record.mods["FS22_Trailer"].title == "--"
    assert record.mods["FS22_Shed"].farms == {0}


def test_zip_and_folder_agree(tmp_path):
    from_zip = parse_savegame(make_zip(tmp_path / "savegame1.zip", SAVE_MEMBERS))
    from_folder = parse_savegame(make_folder(tmp_path / "savegame1", SAVE_MEMBERS))
    assert from_zip == from_folder


def test_single_farm(tmp_path):
    members = dict(SAVE_MEMBERS, **{"farms.xml": '<farms><farm farmId="1" name="Solo"/></farms>'})
    record = parse_savegame(make_zip(tmp_path / "savegame2.zip", members))
    assert record.single_farm is True
    assert record.farms[1].cash == 0
    assert record.farms[1].color == 1


def test_missing_and_broken_files_are_collected(tmp_path):
    members = {"careerSavegame.xml": "<careerSavegame><mod", "vehicles.xml": VEHICLES}
    with open_package(make_zip(tmp_path / "savegame3.zip", members)) as handle:
        record = parse_open_file(handle)
    assert record.is_valid is False
    assert record.error_list == {
        SaveError.CAREER_PARSE_ERROR,
        SaveError.FARMS_MISSING,
        SaveError.PLACEABLE_MISSING,
    }
    assert record.mods["FS22_Tractor"].farms == {1, 2}


def test_unreadable_save_game(tmp_path):
    record = parse_savegame(tmp_path / "missing.zip")
    assert record.is_valid is False
    assert record.error_list == {SaveError.FILE_UNREADABLE}


def test_json_shape(tmp_path):
    record = parse_savegame(make_zip(tmp_path / "savegame1.zip", SAVE_MEMBERS))
    data = json.loads(record.to_json_pretty())
    assert data["mapMod"] == "FS22_BigMap"
    assert data["singleFarm"] is False
    assert data["errorList"] == []
    assert data["mods"]["FS22_Tractor"]["farms"] == [1, 2]
    assert data["farms"]["1"]["name"] == "My Farm"
