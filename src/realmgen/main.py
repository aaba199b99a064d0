"""Command line entry point."""

import argparse
import json
import logging
import sys

from realmgen.config import settings
from realmgen.errors import ConfigurationError
from realmgen.models import MapSize, MapType
from realmgen.pipeline import generate_map
from realmgen.types import GenerationProgress, MapConfig


def setup_logging() -> None:
    """Configure logging for the command line."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realmgen",
        description="Generate a fantasy map and print its summary.",
    )
    parser.add_argument("--seed", default="", help="Master seed (random if omitted)")
    parser.add_argument(
        "--type",
        dest="map_type",
        choices=[t.value for t in MapType],
        default=str(settings.default_map_type),
    )
    parser.add_argument(
        "--size",
        dest="map_size",
        choices=[s.value for s in MapSize],
        default=str(settings.default_map_size),
    )
    parser.add_argument("--width", type=int, help="Override the preset width")
    parser.add_argument("--height", type=int, help="Override the preset height")
    parser.add_argument("--sea-level", type=float)
    parser.add_argument("--roughness", type=float)
    parser.add_argument("--water-coverage", type=float)
    parser.add_argument("--settlement-density", type=float)
    parser.add_argument("--rivers", dest="river_count", type=int, help="Number of rivers to trace")
    parser.add_argument("--erosion-iterations", type=int)
    parser.add_argument("--no-carve", dest="carve_rivers", action="store_false", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, generate a map and log its summary."""
    setup_logging()
    logger = logging.getLogger(__name__)

    args = build_parser().parse_args(argv)
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "map_size" and value is not None
    }

    def report(progress: GenerationProgress) -> None:
        logger.info("[%3.0f%%] %s", progress.progress * 100, progress.message)

    try:
        config = MapConfig.for_size(args.map_size, **overrides)
        result = generate_map(config, progress_callback=report)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2

    logger.info("Map summary: %s", json.dumps(result.summary(), indent=2))
    return 0


def run() -> None:
    """Entry point for the ``realmgen`` script."""
    sys.exit(main())


if __name__ == "__main__":
    run()
