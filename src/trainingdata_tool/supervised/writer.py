"""Chunked, gzip-compressed writer for V4 training records."""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import Union

from .records import TrainingRecord

logger = logging.getLogger(__name__)


def partition_dir_name(partition: int) -> str:
    return f"supervised-{partition}"


def chunk_path(output_dir: Union[str, Path], game_id: int, partition: int) -> Path:
    """Location of the chunk for ``game_id`` inside its partition directory."""
    return Path(output_dir) / partition_dir_name(partition) / f"training.{game_id}.gz"


class TrainingDataWriter:
    """Writes the records of one game to a single ``training.<id>.gz`` chunk.

    ``finalize`` must be called exactly once; it flushes and closes the file.
    """

    def __init__(self, output_dir: Union[str, Path], game_id: int, partition: int) -> None:
        self.path = chunk_path(output_dir, game_id, partition)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = gzip.open(self.path, "wb")
        self._finalized = False
        self.records_written = 0

    def write_chunk(self, record: TrainingRecord) -> None:
        if self._finalized:
            raise RuntimeError(f"Writer for {self.path} is already finalized")
        self._file.write(record.to_bytes())
        self.records_written += 1

    def finalize(self) -> None:
        if self._finalized:
            raise RuntimeError(f"Writer for {self.path} is already finalized")
        self._file.close()
        self._finalized = True
        logger.debug("Wrote %d records to %s", self.records_written, self.path)
