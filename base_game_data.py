"""
Base game (FS22) reference data.

Used whenever a map does not ship its own fruit type, growth or environment
definitions, or ships ones that cannot be read.  Everything here is built
once at import time and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

# Fruit types that never get a calendar entry
SKIP_CROP_TYPES = frozenset({"meadow", "unknown"})

DEFAULT_WEATHER_KEY = "mapUS"


@dataclass(frozen=True)
class CropTypeDefinition:
    """Growth limits for one fruit type."""

    name: str
    states: int
    min_harvest: int
    max_harvest: int


@dataclass(frozen=True)
class BaseCrop:
    """Published base game calendar.  Masks run January..December (1..12)."""

    name: str
    growth_time: int
    harvest_mask: tuple[int, ...]
    plant_mask: tuple[int, ...]

    @property
    def harvest_periods(self) -> list[int]:
        return mask_to_periods(self.harvest_mask)

    @property
    def plant_periods(self) -> list[int]:
        return mask_to_periods(self.plant_mask)


def mask_to_periods(mask: tuple[int, ...]) -> list[int]:
    """``(0, 1, 1, 0, ...)`` -> ``[2, 3]``"""
    return [i for i, on in enumerate(mask, start=1) if on]


BG_CROP_TYPES: tuple[CropTypeDefinition, ...] = (
    CropTypeDefinition("wheat", 8, 8, 8),
    CropTypeDefinition("barley", 7, 7, 7),
    CropTypeDefinition("canola", 9, 9, 9),
    CropTypeDefinition("oat", 5, 5, 5),
    CropTypeDefinition("maize", 7, 7, 7),
    CropTypeDefinition("sunflower", 8, 8, 8),
    CropTypeDefinition("soybean", 7, 7, 7),
    CropTypeDefinition("potato", 6, 6, 6),
    CropTypeDefinition("sugarbeet", 8, 8, 8),
    CropTypeDefinition("sugarcane", 8, 8, 8),
    CropTypeDefinition("cotton", 9, 9, 9),
    CropTypeDefinition("sorghum", 5, 5, 5),
    CropTypeDefinition("grape", 7, 10, 11),
    CropTypeDefinition("olive", 7, 9, 10),
    CropTypeDefinition("poplar", 14, 14, 14),
    CropTypeDefinition("grass", 4, 3, 4),
    CropTypeDefinition("oilseedradish", 2, 2, 2),
)

BG_CROP_TYPES_BY_NAME = MappingProxyType({c.name: c for c in BG_CROP_TYPES})

_ALL = (1,) * 12

#                     J  F  M  A  M  J  J  A  S  O  N  D
BG_CROPS: tuple[BaseCrop, ...] = (
    BaseCrop("wheat", 8,
             (0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0),
             (0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0)),
    BaseCrop("barley", 7,
             (0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0, 0),
             (0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0)),
    BaseCrop("canola", 9,
             (0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0),
             (0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0)),
    BaseCrop("oat", 5,
             (0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0, 0),
             (1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("maize", 7,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (0, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("sunflower", 8,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("soybean", 7,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (0, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("potato", 6,
             (0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0),
             (1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("sugarbeet", 8,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("sugarcane", 8,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("cotton", 9,
             (0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0),
             (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1)),
    BaseCrop("sorghum", 5,
             (0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0, 0),
             (0, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("grape", 7,
             (0, 0, 0, 0, 0, 0, 1, 1, 0, 0, 0, 0),
             (1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("olive", 7,
             (0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0),
             (1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0)),
    BaseCrop("poplar", 14,
             _ALL,
             (1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0)),
    BaseCrop("grass", 4,
             _ALL,
             (1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0)),
    BaseCrop("oilseedradish", 2,
             _ALL,
             (1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0)),
)

# map key -> season -> (min, max) in degrees C
BG_CROP_WEATHER = MappingProxyType({
    "mapUS": MappingProxyType({
        "spring": (6, 18),
        "summer": (13, 34),
        "autumn": (5, 25),
        "winter": (-11, 10),
    }),
    "mapFR": MappingProxyType({
        "spring": (6, 18),
        "summer": (13, 34),
        "autumn": (5, 25),
        "winter": (-11, 10),
    }),
    "mapAlpine": MappingProxyType({
        "spring": (5, 18),
        "summer": (10, 30),
        "autumn": (4, 22),
        "winter": (-12, 8),
    }),
})
