"""Map generation pipeline tying all stages together."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from realmgen.biomes import generate_biomes
from realmgen.climate import generate_climate
from realmgen.hydrology import carve_rivers, generate_rivers
from realmgen.models import MAP_SIZE_DIMENSIONS, GenerationPhase, MapSize, MapType
from realmgen.rng import generate_seed
from realmgen.settlements import generate_settlements
from realmgen.terrain.erosion import apply_hydraulic_erosion, apply_thermal_erosion
from realmgen.terrain.heightmap import generate_heightmap
from realmgen.types import GenerationProgress, MapConfig, MapData, River, Settlement

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[GenerationProgress], None]
Namer = Callable[[str, list[Settlement], list[River]], None]

# Fraction reported when each phase starts
PHASE_PROGRESS: dict[GenerationPhase, float] = {
    GenerationPhase.HEIGHTMAP: 0.1,
    GenerationPhase.EROSION: 0.25,
    GenerationPhase.CLIMATE: 0.4,
    GenerationPhase.BIOMES: 0.5,
    GenerationPhase.RIVERS: 0.6,
    GenerationPhase.SETTLEMENTS: 0.75,
    GenerationPhase.NAMES: 0.9,
    GenerationPhase.COMPLETE: 1.0,
}

PHASE_MESSAGES: dict[GenerationPhase, str] = {
    GenerationPhase.HEIGHTMAP: "Generating terrain...",
    GenerationPhase.EROSION: "Simulating erosion...",
    GenerationPhase.CLIMATE: "Calculating climate...",
    GenerationPhase.BIOMES: "Classifying biomes...",
    GenerationPhase.RIVERS: "Tracing rivers...",
    GenerationPhase.SETTLEMENTS: "Placing settlements...",
    GenerationPhase.NAMES: "Naming places...",
    GenerationPhase.COMPLETE: "Done",
}


@dataclass
class WorldState:
    """Grids and features built up over one run.

    Owned by :class:`MapGenerator`; stages receive the arrays they need
    and hand results back rather than keeping references.
    """

    heightmap: NDArray[np.float64] | None = None
    temperature: NDArray[np.float64] | None = None
    moisture: NDArray[np.float64] | None = None
    biomes: NDArray[np.uint8] | None = None
    classified_elevation: NDArray[np.float64] | None = None
    rivers: list[River] = field(default_factory=list)
    settlements: list[Settlement] = field(default_factory=list)


class MapGenerator:
    """Runs the generation stages in order for one configuration.

    The config is validated again on construction, so an out-of-range
    value raises :class:`ConfigurationError` before any stage runs.
    """

    def __init__(
        self,
        config: MapConfig,
        progress_callback: ProgressCallback | None = None,
        namer: Namer | None = None,
    ) -> None:
        # model_copy and model_construct skip validation
        config = MapConfig.from_options(**config.model_dump())
        if not config.seed:
            config = config.model_copy(update={"seed": generate_seed()})
        self.config = config
        self.progress_callback = progress_callback
        self.namer = namer

    def _report(self, phase: GenerationPhase) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(GenerationProgress(
            phase=str(phase),
            progress=PHASE_PROGRESS[phase],
            message=PHASE_MESSAGES[phase],
        ))

    def generate(self) -> MapData:
        """Run every stage and return the finished map."""
        cfg = self.config
        state = WorldState()

        logger.info(
            "Generating %s map %dx%d (seed=%r)",
            cfg.map_type, cfg.width, cfg.height, cfg.seed,
        )
        t0 = time.perf_counter()

        self._report(GenerationPhase.HEIGHTMAP)
        state.heightmap = generate_heightmap(cfg)

        t_heightmap = time.perf_counter()

        self._report(GenerationPhase.EROSION)
        apply_hydraulic_erosion(state.heightmap, cfg.seed, iterations=cfg.effective_erosion_iterations)
        apply_thermal_erosion(state.heightmap, iterations=cfg.thermal_iterations)

        t_erosion = time.perf_counter()

        self._report(GenerationPhase.CLIMATE)
        state.temperature, state.moisture = generate_climate(state.heightmap, cfg.seed, cfg.sea_level)

        t_climate = time.perf_counter()

        self._report(GenerationPhase.BIOMES)
        state.classified_elevation = state.heightmap.copy()
        state.biomes = generate_biomes(
            state.classified_elevation, state.temperature, state.moisture, cfg.seed, cfg.sea_level,
        )

        t_biomes = time.perf_counter()

        self._report(GenerationPhase.RIVERS)
        state.rivers = generate_rivers(
            state.heightmap,
            state.moisture,
            cfg.seed,
            cfg.sea_level,
            river_count=cfg.effective_river_count,
            min_river_length=cfg.min_river_length,
        )
        if cfg.carve_rivers:
            carve_rivers(state.heightmap, state.rivers)

        t_rivers = time.perf_counter()

        self._report(GenerationPhase.SETTLEMENTS)
        state.settlements = generate_settlements(
            state.heightmap,
            state.moisture,
            state.biomes,
            state.rivers,
            cfg.seed,
            cfg.sea_level,
            cfg.settlement_density,
        )

        t_settlements = time.perf_counter()

        self._report(GenerationPhase.NAMES)
        if self.namer is not None:
            self.namer(cfg.seed, state.settlements, state.rivers)

        self._report(GenerationPhase.COMPLETE)

        t_end = time.perf_counter()
        logger.info(
            "[Realm] Phase timings: heightmap=%.1fms erosion=%.1fms climate=%.1fms biomes=%.1fms "
            "rivers=%.1fms settlements=%.1fms total=%.1fms (%d rivers, %d settlements)",
            (t_heightmap - t0) * 1000,
            (t_erosion - t_heightmap) * 1000,
            (t_climate - t_erosion) * 1000,
            (t_biomes - t_climate) * 1000,
            (t_rivers - t_biomes) * 1000,
            (t_settlements - t_rivers) * 1000,
            (t_end - t0) * 1000,
            len(state.rivers),
            len(state.settlements),
        )

        return MapData(
            config=cfg,
            heightmap=state.heightmap,
            temperature=state.temperature,
            moisture=state.moisture,
            biomes=state.biomes,
            classified_elevation=state.classified_elevation,
            rivers=state.rivers,
            settlements=state.settlements,
        )


def generate_map(
    config: MapConfig | None = None,
    *,
    progress_callback: ProgressCallback | None = None,
    namer: Namer | None = None,
    **overrides: Any,
) -> MapData:
    """Validate the configuration and generate a map.

    Args:
        config: Base configuration (defaults to :class:`MapConfig` defaults)
        progress_callback: Called with a :class:`GenerationProgress` per phase
        namer: Called as ``namer(seed, settlements, rivers)`` to fill names
        **overrides: Field values replacing those in *config*

    Raises:
        ConfigurationError: If the resulting options are invalid; raised
            before any stage runs
    """
    options = config.model_dump() if config is not None else {}
    options.update(overrides)
    validated = MapConfig.from_options(**options)
    return MapGenerator(validated, progress_callback=progress_callback, namer=namer).generate()


def quick_generate(
    map_type: MapType | str = MapType.ISLAND,
    map_size: MapSize | str = MapSize.REGIONAL,
) -> MapData:
    """Generate a map with a random seed and default settings."""
    config = MapConfig.for_size(map_size, map_type=map_type, seed=generate_seed())
    return MapGenerator(config).generate()
