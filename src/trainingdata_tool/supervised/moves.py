"""Canonical move space and policy targets.

Moves are expressed from the side to move's point of view (Black's moves are
mirrored vertically) and indexed into a fixed 1858-entry policy vector:

    0..1791     queen-line and knight moves, grouped by from-square and
                sorted by to-square
    1792..1857  queen, rook and bishop promotions from the seventh rank

Knight promotions share the index of the plain pawn move.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import chess

# ---------------------------------------------------------------------------
# Policy index
# ---------------------------------------------------------------------------

# Promotion piece -> policy suffix. Knights use the plain move's slot.
_PROMOTION_SUFFIX: Dict[Optional[int], str] = {
    None: "",
    chess.KNIGHT: "",
    chess.BISHOP: "b",
    chess.ROOK: "r",
    chess.QUEEN: "q",
}

_PROMOTION_ORDER = (chess.QUEEN, chess.ROOK, chess.BISHOP)


def _reachable(from_sq: int, to_sq: int) -> bool:
    df = abs(chess.square_file(from_sq) - chess.square_file(to_sq))
    dr = abs(chess.square_rank(from_sq) - chess.square_rank(to_sq))
    if df == 0 or dr == 0 or df == dr:
        return True
    return {df, dr} == {1, 2}


def _build_policy_moves() -> List[str]:
    moves: List[str] = []
    for from_sq in chess.SQUARES:
        for to_sq in chess.SQUARES:
            if to_sq != from_sq and _reachable(from_sq, to_sq):
                moves.append(chess.SQUARE_NAMES[from_sq] + chess.SQUARE_NAMES[to_sq])

    for from_file in range(8):
        from_sq = chess.square(from_file, 6)
        for to_file in range(max(0, from_file - 1), min(7, from_file + 1) + 1):
            to_sq = chess.square(to_file, 7)
            for piece in _PROMOTION_ORDER:
                moves.append(
                    chess.SQUARE_NAMES[from_sq]
                    + chess.SQUARE_NAMES[to_sq]
                    + _PROMOTION_SUFFIX[piece]
                )
    return moves


POLICY_MOVES: List[str] = _build_policy_moves()
POLICY_SIZE = len(POLICY_MOVES)  # 1858

_POLICY_INDEX: Dict[str, int] = {uci: idx for idx, uci in enumerate(POLICY_MOVES)}


# ---------------------------------------------------------------------------
# Canonical moves
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CanonicalMove:
    """A move in the side-to-move frame used by the policy vector."""

    from_square: int
    to_square: int
    promotion: Optional[int] = None
    castling: bool = False

    def mirror(self) -> "CanonicalMove":
        return CanonicalMove(
            chess.square_mirror(self.from_square),
            chess.square_mirror(self.to_square),
            self.promotion,
            self.castling,
        )

    def uci(self) -> str:
        return (
            chess.SQUARE_NAMES[self.from_square]
            + chess.SQUARE_NAMES[self.to_square]
            + _PROMOTION_SUFFIX[self.promotion]
        )

    def nn_index(self) -> int:
        """Position of this move in ``POLICY_MOVES``."""
        try:
            return _POLICY_INDEX[self.uci()]
        except KeyError:
            raise ValueError(f"Move {self.uci()} has no policy index") from None


def translate_move(move: chess.Move, board: chess.Board) -> CanonicalMove:
    """Convert a python-chess move played on ``board`` into canonical form.

    Castling is normalised to the king landing on the g- or c-file whatever
    the rook placement (python-chess writes Chess960 castling as king takes
    rook), and Black's moves are mirrored so White's frame is always used.
    A king already standing on its castling file keeps the rook square as
    destination, since a move onto its own square has no policy index.
    """
    to_square = move.to_square
    castling = False
    if move.promotion is None and board.is_castling(move):
        file_to = 6 if board.is_kingside_castling(move) else 2
        normalised = chess.square(file_to, chess.square_rank(move.from_square))
        if normalised != move.from_square:
            to_square = normalised
        castling = True

    canonical = CanonicalMove(move.from_square, to_square, move.promotion, castling)
    if board.turn == chess.BLACK:
        canonical = canonical.mirror()
    return canonical


def legal_canonical_moves(board: chess.Board) -> List[CanonicalMove]:
    return [translate_move(move, board) for move in board.legal_moves]


# ---------------------------------------------------------------------------
# Probability targets
# ---------------------------------------------------------------------------

def contains_move(legal_moves: Iterable[CanonicalMove], played: CanonicalMove) -> bool:
    """True if ``played`` matches a legal move by squares, promotion and castling."""
    for legal in legal_moves:
        if (
            legal.from_square == played.from_square
            and legal.to_square == played.to_square
            and legal.promotion == played.promotion
            and legal.castling == played.castling
        ):
            return True
    return False


def build_move_probabilities(
    legal_moves: Iterable[CanonicalMove],
    played: CanonicalMove,
) -> Tuple[float, ...]:
    """Return the policy target: -1 illegal, 0 legal, 1 for the played move.

    The played move is always marked, even when it is missing from
    ``legal_moves``; callers check ``contains_move`` to report that case.
    """
    probabilities = [-1.0] * POLICY_SIZE
    for move in legal_moves:
        probabilities[move.nn_index()] = 0.0
    probabilities[played.nn_index()] = 1.0
    return tuple(probabilities)
