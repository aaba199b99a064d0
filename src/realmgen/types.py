"""Type definitions for map generation."""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from realmgen.errors import ConfigurationError
from realmgen.models import (
    MAP_SIZE_DIMENSIONS,
    Biome,
    MapSize,
    MapType,
    RiverTermination,
    SettlementSize,
    SettlementType,
)


class MapConfig(BaseModel):
    """Inputs for one generation run.

    All values are read-only for the duration of the run; the same config
    and seed always produce the same map.  Direct construction raises
    pydantic's ``ValidationError``; use :meth:`from_options` to get
    :class:`ConfigurationError` instead.
    """

    model_config = ConfigDict(frozen=True)

    seed: str = Field(
        default="",
        description="Master seed; an empty seed is replaced by a random one at generation time",
    )
    map_type: MapType = Field(
        default=MapType.ISLAND,
        description="Landmass shape applied by the heightmap stage",
    )
    width: int = Field(default=512, ge=1, description="Grid width in cells")
    height: int = Field(default=512, ge=1, description="Grid height in cells")
    sea_level: float = Field(
        default=0.35,
        ge=0.0,
        le=1.0,
        description="Elevation threshold separating ocean from land",
    )
    roughness: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="0 = smooth rolling terrain, 1 = rugged terrain",
    )
    water_coverage: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Lake density for inland, great-lake and large landmass types",
    )
    settlement_density: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Scales the number of settlements placed",
    )

    # Stage tuning
    carve_rivers: bool = Field(default=True, description="Lower elevation along accepted rivers")
    river_count: int | None = Field(
        default=None,
        ge=0,
        description="Rivers to accept; defaults to width // 50",
    )
    min_river_length: int = Field(default=15, ge=1, description="Minimum samples per river")
    erosion_iterations: int | None = Field(
        default=None,
        ge=0,
        description="Hydraulic erosion droplets; defaults to 10% of the cell count",
    )
    thermal_iterations: int = Field(default=5, ge=0, description="Thermal erosion passes")

    @classmethod
    def from_options(cls, **options: Any) -> "MapConfig":
        """Validate *options* into a config, raising :class:`ConfigurationError`."""
        try:
            return cls(**options)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid map configuration: {exc}") from exc

    @classmethod
    def for_size(cls, size: MapSize | str, **options: Any) -> "MapConfig":
        """Build a config whose dimensions come from a named size preset."""
        try:
            edge = MAP_SIZE_DIMENSIONS[MapSize(size)]
        except ValueError as exc:
            raise ConfigurationError(f"Unknown map size: {size!r}") from exc
        options.setdefault("width", edge)
        options.setdefault("height", edge)
        return cls.from_options(**options)

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    @property
    def effective_river_count(self) -> int:
        if self.river_count is not None:
            return self.river_count
        return self.width // 50

    @property
    def effective_erosion_iterations(self) -> int:
        if self.erosion_iterations is not None:
            return self.erosion_iterations
        return int(self.cell_count * 0.1)


@dataclass
class RiverPoint:
    """One sample along a river path.

    ``x``/``y`` carry a small sub-cell offset from the cell the sample
    occupies; ``cell`` recovers the integer cell.
    """

    x: float
    y: float
    flow: float = 1.0

    @property
    def cell(self) -> tuple[int, int]:
        return int(round(self.x)), int(round(self.y))


@dataclass
class River:
    """A traced river from source to mouth."""

    id: str
    points: list[RiverPoint] = field(default_factory=list)
    name: str = ""  # Filled by an external namer
    terminated: RiverTermination = RiverTermination.SEA

    def __len__(self) -> int:
        return len(self.points)

    @property
    def mouth(self) -> RiverPoint:
        return self.points[-1]

    def cells(self) -> list[tuple[int, int]]:
        """Integer cells covered by the river, source first."""
        return [p.cell for p in self.points]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "terminated": str(self.terminated),
            "points": [{"x": p.x, "y": p.y, "flow": p.flow} for p in self.points],
        }


@dataclass
class Settlement:
    """A placed settlement."""

    id: str
    x: int
    y: int
    size: SettlementSize
    population: int
    type: SettlementType
    name: str = ""  # Filled by an external namer

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "size": str(self.size),
            "population": self.population,
            "type": str(self.type),
        }


@dataclass(frozen=True)
class GenerationProgress:
    """Payload delivered to progress callbacks between phases."""

    phase: str
    progress: float  # 0-1
    message: str = ""


@dataclass
class MapData:
    """Complete output of a generation run.

    Grids are numpy arrays shaped ``(height, width)`` and indexed ``[y, x]``.
    ``classified_elevation`` is the elevation snapshot the biome classifier
    consumed; ``heightmap`` additionally reflects river carving.
    """

    config: MapConfig
    heightmap: NDArray[np.float64]
    temperature: NDArray[np.float64]
    moisture: NDArray[np.float64]
    biomes: NDArray[np.uint8]
    classified_elevation: NDArray[np.float64]
    rivers: list[River] = field(default_factory=list)
    settlements: list[Settlement] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def land_fraction(self) -> float:
        """Fraction of cells not classified as ocean."""
        return float(np.count_nonzero(self.biomes != Biome.OCEAN)) / self.biomes.size

    def biome_counts(self) -> dict[str, int]:
        ids, counts = np.unique(self.biomes, return_counts=True)
        return {Biome(int(i)).name.lower(): int(c) for i, c in zip(ids, counts)}

    def summary(self) -> dict[str, Any]:
        """Compact description for logs and CLI output."""
        return {
            "seed": self.config.seed,
            "map_type": str(self.config.map_type),
            "size": f"{self.width}x{self.height}",
            "land_fraction": round(self.land_fraction(), 4),
            "rivers": len(self.rivers),
            "settlements": len(self.settlements),
            "population": sum(s.population for s in self.settlements),
            "biomes": self.biome_counts(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain Python containers."""
        return {
            "config": self.config.model_dump(mode="json"),
            "heightmap": self.heightmap.tolist(),
            "temperature": self.temperature.tolist(),
            "moisture": self.moisture.tolist(),
            "biomes": self.biomes.tolist(),
            "rivers": [r.to_dict() for r in self.rivers],
            "settlements": [s.to_dict() for s in self.settlements],
        }
