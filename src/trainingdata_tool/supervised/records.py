"""V4 training records and their assembly from a game position.

Each record is a fixed 8292-byte little-endian struct:

    uint32  version
    float32 probabilities[1858]
    uint64  planes[104]
    uint8   castling_us_ooo, castling_us_oo, castling_them_ooo, castling_them_oo
    uint8   side_to_move, rule50_count, move_count
    int8    result
    float32 root_q, best_q, root_d, best_d
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import chess

from .encoding import (
    HISTORY_LENGTH,
    NUM_HISTORY_PLANES,
    castling_flags,
    encode_position_history,
    reverse_bits_in_bytes,
)
from .moves import POLICY_SIZE, CanonicalMove, build_move_probabilities

RECORD_VERSION = 4

_V4_STRUCT = struct.Struct(f"<I{POLICY_SIZE}f{NUM_HISTORY_PLANES}Q7Bb4f")
RECORD_SIZE = _V4_STRUCT.size  # 8292


class GameResult(enum.Enum):
    WHITE_WON = "1-0"
    BLACK_WON = "0-1"
    DRAW = "1/2-1/2"

    @classmethod
    def from_pgn(cls, result: str) -> "GameResult":
        """Parse a PGN result tag. Unfinished games ("*") count as draws."""
        if result == "1-0":
            return cls.WHITE_WON
        if result == "0-1":
            return cls.BLACK_WON
        return cls.DRAW


@dataclass(frozen=True)
class TrainingRecord:
    probabilities: Tuple[float, ...]
    planes: Tuple[int, ...]
    castling_us_ooo: int
    castling_us_oo: int
    castling_them_ooo: int
    castling_them_oo: int
    side_to_move: int
    rule50_count: int
    result: int
    root_q: float
    best_q: float
    root_d: float
    best_d: float
    move_count: int = 0
    version: int = RECORD_VERSION

    def to_bytes(self) -> bytes:
        return _V4_STRUCT.pack(
            self.version,
            *self.probabilities,
            *self.planes,
            self.castling_us_ooo,
            self.castling_us_oo,
            self.castling_them_ooo,
            self.castling_them_oo,
            self.side_to_move,
            self.rule50_count,
            self.move_count,
            self.result,
            self.root_q,
            self.best_q,
            self.root_d,
            self.best_d,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "TrainingRecord":
        fields = _V4_STRUCT.unpack(data)
        version = fields[0]
        if version != RECORD_VERSION:
            raise ValueError(f"Unsupported training data version: {version}")

        probs_end = 1 + POLICY_SIZE
        planes_end = probs_end + NUM_HISTORY_PLANES
        (
            us_ooo, us_oo, them_ooo, them_oo,
            side_to_move, rule50_count, move_count, result,
            root_q, best_q, root_d, best_d,
        ) = fields[planes_end:]

        return cls(
            probabilities=tuple(fields[1:probs_end]),
            planes=tuple(fields[probs_end:planes_end]),
            castling_us_ooo=us_ooo,
            castling_us_oo=us_oo,
            castling_them_ooo=them_ooo,
            castling_them_oo=them_oo,
            side_to_move=side_to_move,
            rule50_count=rule50_count,
            result=result,
            root_q=root_q,
            best_q=best_q,
            root_d=root_d,
            best_d=best_d,
            move_count=move_count,
            version=version,
        )


def _result_for_side_to_move(game_result: GameResult, turn: chess.Color) -> Tuple[int, float]:
    """Return (result label, draw confidence) from the mover's perspective."""
    if game_result is GameResult.DRAW:
        return 0, 1.0
    winner = chess.WHITE if game_result is GameResult.WHITE_WON else chess.BLACK
    return (1 if winner == turn else -1), 0.0


def assemble_training_record(
    game_result: GameResult,
    history: Sequence[chess.Board],
    played_move: CanonicalMove,
    legal_moves: Iterable[CanonicalMove],
    q: float,
) -> TrainingRecord:
    """Build one record for the last position of ``history``.

    Parameters
    ----------
    game_result:  Final result of the game.
    history:      Positions from the start of the game to the current one.
    played_move:  The move played from the current position (canonical).
    legal_moves:  All legal moves of the current position (canonical).
    q:            Expected outcome from White's point of view.
    """
    position = history[-1]
    black_to_move = position.turn == chess.BLACK

    planes = encode_position_history(history, HISTORY_LENGTH)
    us_ooo, us_oo, them_ooo, them_oo = castling_flags(position)
    result, draw = _result_for_side_to_move(game_result, position.turn)
    stored_q = -q if black_to_move else q

    return TrainingRecord(
        probabilities=build_move_probabilities(legal_moves, played_move),
        planes=tuple(reverse_bits_in_bytes(mask) for mask in planes),
        castling_us_ooo=int(us_ooo),
        castling_us_oo=int(us_oo),
        castling_them_ooo=int(them_ooo),
        castling_them_oo=int(them_oo),
        side_to_move=int(black_to_move),
        rule50_count=min(position.halfmove_clock, 255),
        result=result,
        root_q=stored_q,
        best_q=stored_q,
        root_d=draw,
        best_d=draw,
    )
