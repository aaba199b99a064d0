"""Enumerations shared across the generator."""

from enum import IntEnum, StrEnum


class MapType(StrEnum):
    """Landmass shape used by the heightmap mask stage."""

    ISLAND = "island"
    ARCHIPELAGO = "archipelago"
    PENINSULA = "peninsula"
    CONTINENT = "continent"
    INLAND = "inland"
    COASTAL = "coastal"
    ISTHMUS = "isthmus"
    ATOLL = "atoll"
    DELTA = "delta"
    FJORD = "fjord"
    GREAT_LAKE = "great-lake"


class MapSize(StrEnum):
    """Named map dimensions."""

    LOCAL = "local"
    REGIONAL = "regional"
    KINGDOM = "kingdom"
    CONTINENTAL = "continental"


# Square edge length in cells per preset
MAP_SIZE_DIMENSIONS: dict[MapSize, int] = {
    MapSize.LOCAL: 256,
    MapSize.REGIONAL: 512,
    MapSize.KINGDOM: 1024,
    MapSize.CONTINENTAL: 2048,
}


class Biome(IntEnum):
    """Biome ids stored in the biome grid."""

    OCEAN = 0
    BEACH = 1
    GRASSLAND = 2
    FOREST = 3
    RAINFOREST = 4
    DESERT = 5
    TUNDRA = 6
    SNOW = 7
    MOUNTAIN = 8
    SWAMP = 9
    LAKE = 10


class RiverTermination(StrEnum):
    """Why a river trace stopped."""

    SEA = "sea"  # Reached a cell below sea level
    CONFLUENCE = "confluence"  # Ran into a previously accepted river
    STUCK = "stuck"  # Local minimum with no escape in reach
    EDGE = "edge"  # Left the interior of the map
    BUDGET = "budget"  # Step budget exhausted


class SettlementSize(StrEnum):
    """Settlement tiers, smallest first."""

    THORP = "thorp"
    HAMLET = "hamlet"
    VILLAGE = "village"
    SMALL_TOWN = "small_town"
    LARGE_TOWN = "large_town"
    SMALL_CITY = "small_city"
    LARGE_CITY = "large_city"
    METROPOLIS = "metropolis"


# Inclusive population range per tier
SETTLEMENT_POPULATIONS: dict[SettlementSize, tuple[int, int]] = {
    SettlementSize.THORP: (20, 80),
    SettlementSize.HAMLET: (81, 400),
    SettlementSize.VILLAGE: (401, 900),
    SettlementSize.SMALL_TOWN: (901, 2000),
    SettlementSize.LARGE_TOWN: (2001, 5000),
    SettlementSize.SMALL_CITY: (5001, 12000),
    SettlementSize.LARGE_CITY: (12001, 25000),
    SettlementSize.METROPOLIS: (25001, 100000),
}


class SettlementType(StrEnum):
    """Settlement character, derived from its site."""

    PORT = "port"
    RIVER_TOWN = "river_town"
    MOUNTAIN_TOWN = "mountain_town"
    FARMING_VILLAGE = "farming_village"


class GenerationPhase(StrEnum):
    """Labels reported through the progress callback."""

    HEIGHTMAP = "Heightmap"
    EROSION = "Erosion"
    CLIMATE = "Climate"
    BIOMES = "Biomes"
    RIVERS = "Rivers"
    SETTLEMENTS = "Settlements"
    NAMES = "Names"
    COMPLETE = "Complete"
