"""Terrain generation: noise, landmass masks, heightmap and erosion."""

from realmgen.terrain.erosion import ErosionOptions, apply_hydraulic_erosion, apply_thermal_erosion
from realmgen.terrain.geographic_masks import (
    MaskContext,
    apply_landmass_mask,
    available_masks,
    get_mask,
    register_mask,
)
from realmgen.terrain.heightmap import generate_heightmap
from realmgen.terrain.noise import PerlinNoise

__all__ = [
    "ErosionOptions",
    "MaskContext",
    "PerlinNoise",
    "apply_hydraulic_erosion",
    "apply_landmass_mask",
    "apply_thermal_erosion",
    "available_masks",
    "generate_heightmap",
    "get_mask",
    "register_mask",
]
