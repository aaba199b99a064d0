"""Deterministic fantasy map generation."""

from realmgen.errors import ConfigurationError
from realmgen.models import Biome, MapSize, MapType, SettlementSize, SettlementType
from realmgen.pipeline import MapGenerator, generate_map, quick_generate
from realmgen.rng import SeededRandom, stage_rng
from realmgen.types import GenerationProgress, MapConfig, MapData, River, RiverPoint, Settlement

__all__ = [
    "Biome",
    "ConfigurationError",
    "GenerationProgress",
    "MapConfig",
    "MapData",
    "MapGenerator",
    "MapSize",
    "MapType",
    "River",
    "RiverPoint",
    "SeededRandom",
    "Settlement",
    "SettlementSize",
    "SettlementType",
    "generate_map",
    "quick_generate",
    "stage_rng",
]
