"""Conversion settings shared by the game processor and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_GAMES_PER_DIRECTORY = 10_000
DEFAULT_MAX_GAMES_TO_CONVERT = 10_000_000


@dataclass(frozen=True)
class ConversionConfig:
    """
    Parameters
    ----------
    output_dir:           Root under which ``supervised-<n>`` directories are made.
    verbose:              Log every move read (DEBUG level).
    fishtest_mode:        Abandon a game at the first move without a comment.
    skip_unscored_moves:  Skip a commented move with no score instead of
                          abandoning the rest of the game.
    games_per_directory:  Games written into each ``supervised-<n>`` directory.
    max_games_to_convert: Stop after this many games have been written.
    """

    output_dir: Path = Path(".")
    verbose: bool = False
    fishtest_mode: bool = False
    skip_unscored_moves: bool = False
    games_per_directory: int = DEFAULT_GAMES_PER_DIRECTORY
    max_games_to_convert: int = DEFAULT_MAX_GAMES_TO_CONVERT

    def __post_init__(self) -> None:
        if self.games_per_directory < 1:
            raise ValueError("games_per_directory must be at least 1")
        if self.max_games_to_convert < 0:
            raise ValueError("max_games_to_convert must not be negative")
