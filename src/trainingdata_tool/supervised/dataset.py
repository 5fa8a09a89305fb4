"""PyTorch Dataset over written training chunks.

Each sample yields:
    (planes, probabilities, wdl, q)

where
    planes        : [112, 8, 8]  — network input rebuilt from the record.
    probabilities : [1858]       — policy target (-1 marks illegal moves).
    wdl           : [3]          — one-hot win/draw/loss for the side to move.
    q             : float        — expected outcome target (root_q).
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import List, Tuple, Union

import torch
from torch.utils.data import Dataset

from .encoding import planes_to_tensor
from .records import RECORD_SIZE, TrainingRecord

logger = logging.getLogger(__name__)


def load_chunk(path: Union[str, Path]) -> List[TrainingRecord]:
    """Decode every record of one ``training.<id>.gz`` chunk."""
    with gzip.open(path, "rb") as f:
        data = f.read()
    if len(data) % RECORD_SIZE:
        raise ValueError(
            f"{path}: size {len(data)} is not a multiple of the record size {RECORD_SIZE}"
        )
    return [
        TrainingRecord.from_bytes(data[offset:offset + RECORD_SIZE])
        for offset in range(0, len(data), RECORD_SIZE)
    ]


class ChunkDataset(Dataset):
    """Load training records from every chunk under a directory.

    Parameters
    ----------
    root:
        Output directory of a conversion run (holds ``supervised-<n>``).
    max_records:
        Optional cap on how many records to load.
    """

    def __init__(
        self,
        root: str | Path,
        max_records: int | None = None,
    ) -> None:
        super().__init__()
        self._records: List[TrainingRecord] = []
        self._load(Path(root), max_records)
        logger.info("ChunkDataset: %d records from %s", len(self._records), root)

    def _load(self, root: Path, max_records: int | None) -> None:
        for path in sorted(root.glob("**/training.*.gz")):
            for record in load_chunk(path):
                self._records.append(record)
                if max_records is not None and len(self._records) >= max_records:
                    return

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, idx: int) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, float]:
        record = self._records[idx]
        planes = planes_to_tensor(record)
        probabilities = torch.tensor(record.probabilities, dtype=torch.float32)
        wdl = torch.tensor(
            [record.result == 1, record.result == 0, record.result == -1],
            dtype=torch.float32,
        )
        return planes, probabilities, wdl, record.root_q
