"""Convert annotated PGN files into supervised training chunks.

Usage::

    trainingdata-tool --fishtest-mode --games-per-dir 5000 \\
        --output-dir data/ games1.pgn games2.pgn

or ``python -m trainingdata_tool.cli ...``.
"""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional

from trainingdata_tool.supervised.config import (
    DEFAULT_GAMES_PER_DIRECTORY,
    DEFAULT_MAX_GAMES_TO_CONVERT,
    ConversionConfig,
)
from trainingdata_tool.supervised.pgn_reader import PgnReader
from trainingdata_tool.supervised.processor import GameCounter, GameProcessor

logger = logging.getLogger(__name__)

_PROGRESS_EVERY = 100


def convert_files(
    paths: Iterable[str | Path],
    config: ConversionConfig,
    counter: Optional[GameCounter] = None,
) -> GameCounter:
    """Convert every game of ``paths`` in order and return the game counter.

    Missing paths are skipped. Conversion stops once
    ``config.max_games_to_convert`` games have been written.
    """
    counter = counter if counter is not None else GameCounter()
    processor = GameProcessor(config, counter)
    total_records = 0
    t0 = time.time()

    for path in map(Path, paths):
        if counter.games_written >= config.max_games_to_convert:
            break
        if not path.is_file():
            logger.debug("Skipping missing input %s", path)
            continue

        try:
            with PgnReader(path) as reader:
                for game in reader:
                    if counter.games_written >= config.max_games_to_convert:
                        logger.info("Reached %d converted games, stopping", counter.games_written)
                        break
                    before = counter.games_written
                    total_records += processor.process(game)
                    if counter.games_written != before and counter.games_written % _PROGRESS_EVERY == 0:
                        elapsed = time.time() - t0
                        logger.info(
                            "  %d games, %d records so far (%.1f games/sec)",
                            counter.games_written, total_records,
                            counter.games_written / elapsed if elapsed > 0 else 0,
                        )
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)

    dt = time.time() - t0
    logger.info(
        "Done. %d games -> %d records in %.1fs",
        counter.games_written, total_records, dt,
    )
    return counter


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert PGN games with engine evaluations into V4 training data",
    )
    parser.add_argument("inputs", nargs="+", help="PGN files to convert")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every move read")
    parser.add_argument(
        "--fishtest-mode", "--strict", dest="fishtest_mode", action="store_true",
        help="Stop converting a game at its first move without a comment",
    )
    parser.add_argument(
        "--skip-unscored", action="store_true",
        help="Skip commented moves without a score instead of ending the game",
    )
    parser.add_argument(
        "--games-per-dir", type=int, default=DEFAULT_GAMES_PER_DIRECTORY,
        help=f"Games per output directory (default: {DEFAULT_GAMES_PER_DIRECTORY})",
    )
    parser.add_argument(
        "--max-games-to-convert", type=int, default=DEFAULT_MAX_GAMES_TO_CONVERT,
        help=f"Stop after this many games (default: {DEFAULT_MAX_GAMES_TO_CONVERT})",
    )
    parser.add_argument(
        "--output-dir", "-o", default=".",
        help="Directory for the supervised-<n> folders (default: .)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = ConversionConfig(
        output_dir=Path(args.output_dir),
        verbose=args.verbose,
        fishtest_mode=args.fishtest_mode,
        skip_unscored_moves=args.skip_unscored,
        games_per_directory=args.games_per_dir,
        max_games_to_convert=args.max_games_to_convert,
    )
    if config.verbose:
        logger.info("Verbose mode ON")
    if config.fishtest_mode:
        logger.info("fishtest mode ON")
    logger.info(
        "Max games per directory: %d, max games to convert: %d",
        config.games_per_directory, config.max_games_to_convert,
    )
    convert_files(args.inputs, config)


if __name__ == "__main__":
    main()
