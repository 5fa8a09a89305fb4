"""Supervised training data from annotated games.

Converts PGN games whose moves carry engine evaluations into V4 training
records (policy target, board planes, game result and expected outcome).
"""

from .config import ConversionConfig
from .dataset import ChunkDataset, load_chunk
from .moves import POLICY_SIZE, CanonicalMove, build_move_probabilities, translate_move
from .pgn_reader import AnnotatedGame, MoveToken, PgnReader
from .processor import GameCounter, GameProcessor
from .records import GameResult, TrainingRecord, assemble_training_record
from .scoring import MATE_SCORE, extract_comment_score, score_to_outcome
from .writer import TrainingDataWriter

__all__ = [
    "AnnotatedGame",
    "CanonicalMove",
    "ChunkDataset",
    "ConversionConfig",
    "GameCounter",
    "GameProcessor",
    "GameResult",
    "MATE_SCORE",
    "MoveToken",
    "POLICY_SIZE",
    "PgnReader",
    "TrainingDataWriter",
    "TrainingRecord",
    "assemble_training_record",
    "build_move_probabilities",
    "extract_comment_score",
    "load_chunk",
    "score_to_outcome",
    "translate_move",
]
