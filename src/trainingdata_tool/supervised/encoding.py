"""Position encoding for V4 training records.

Turns a position history (list of ``chess.Board``) into 104 bitmask planes
and rebuilds the full [112, 8, 8] network input from a stored record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Hashable, List, Sequence, Tuple

import chess
import torch

if TYPE_CHECKING:
    from .records import TrainingRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Piece-type order used for plane encoding (1-indexed in python-chess).
_PIECE_TYPES: List[int] = [
    chess.PAWN,
    chess.KNIGHT,
    chess.BISHOP,
    chess.ROOK,
    chess.QUEEN,
    chess.KING,
]

# Planes per look-back step:
#   6 own piece planes + 6 opponent piece planes + 1 repetition plane
PLANES_PER_POSITION = 13
HISTORY_LENGTH = 8
NUM_HISTORY_PLANES = PLANES_PER_POSITION * HISTORY_LENGTH  # 104

# Channel layout of the rebuilt input tensor:
#   0..103  = history planes
#   104-107 = castling (us O-O-O, us O-O, them O-O-O, them O-O)
#   108     = side to move (1 = Black)
#   109     = rule50 counter, normalised
#   110     = zeros
#   111     = ones
_TOTAL_CHANNELS = NUM_HISTORY_PLANES + 8  # 112

_ALL_SQUARES = 0xFFFF_FFFF_FFFF_FFFF


# ---------------------------------------------------------------------------
# Bit helpers
# ---------------------------------------------------------------------------

def reverse_bits_in_bytes(v: int) -> int:
    """Reverse the bit order inside each byte of a 64-bit mask."""
    v = ((v >> 1) & 0x5555_5555_5555_5555) | ((v & 0x5555_5555_5555_5555) << 1)
    v = ((v >> 2) & 0x3333_3333_3333_3333) | ((v & 0x3333_3333_3333_3333) << 2)
    v = ((v >> 4) & 0x0F0F_0F0F_0F0F_0F0F) | ((v & 0x0F0F_0F0F_0F0F_0F0F) << 4)
    return v


def position_key(board: chess.Board) -> Hashable:
    """Identity of a position for repetition detection."""
    ep_square = board.ep_square if board.has_legal_en_passant() else None
    return (board.board_fen(), board.turn, board.clean_castling_rights(), ep_square)


# ---------------------------------------------------------------------------
# History -> planes
# ---------------------------------------------------------------------------

def _board_planes(board: chess.Board, us: chess.Color, repeated: bool) -> List[int]:
    """Return the 13 masks for one snapshot, seen from ``us``.

    The board is flipped vertically when ``us`` is Black so the player to
    move always sits on ranks 1-2.
    """
    planes: List[int] = []
    for color in (us, not us):
        for piece_type in _PIECE_TYPES:
            mask = board.pieces_mask(piece_type, color)
            if us == chess.BLACK:
                mask = chess.flip_vertical(mask)
            planes.append(mask)
    planes.append(_ALL_SQUARES if repeated else 0)
    return planes


def _is_repetition(history: Sequence[chess.Board], idx: int) -> bool:
    key = position_key(history[idx])
    return any(position_key(board) == key for board in history[:idx])


def encode_position_history(
    history: Sequence[chess.Board],
    history_length: int = HISTORY_LENGTH,
) -> List[int]:
    """Encode the last ``history_length`` positions into bitmask planes.

    Parameters
    ----------
    history:
        Positions from the start of the game up to the current one.
    history_length:
        Look-back depth.

    Returns
    -------
    list of ``PLANES_PER_POSITION * history_length`` ints. Missing steps
    repeat the oldest position when the game started from a custom FEN and
    are left empty otherwise.
    """
    if not history:
        raise ValueError("Position history is empty")

    us = history[-1].turn
    fill_missing = position_key(history[0]) != position_key(chess.Board())
    planes: List[int] = []

    for step in range(history_length):
        idx = len(history) - 1 - step
        if idx < 0:
            if not fill_missing:
                planes.extend([0] * PLANES_PER_POSITION * (history_length - step))
                break
            idx = 0
            repeated = False
        else:
            repeated = _is_repetition(history, idx)
        planes.extend(_board_planes(history[idx], us, repeated))

    return planes


def castling_flags(board: chess.Board) -> Tuple[bool, bool, bool, bool]:
    """Return (us O-O-O, us O-O, them O-O-O, them O-O) for the side to move."""
    us = board.turn
    them = not us
    return (
        board.has_queenside_castling_rights(us),
        board.has_kingside_castling_rights(us),
        board.has_queenside_castling_rights(them),
        board.has_kingside_castling_rights(them),
    )


# ---------------------------------------------------------------------------
# Record -> Tensor
# ---------------------------------------------------------------------------

def _mask_to_plane(mask: int) -> torch.Tensor:
    plane = torch.zeros(8, 8)
    for square in chess.scan_forward(mask):
        plane[chess.square_rank(square), chess.square_file(square)] = 1.0
    return plane


def planes_to_tensor(record: "TrainingRecord") -> torch.Tensor:
    """Rebuild the [112, 8, 8] network input from a stored record."""
    planes = torch.zeros(_TOTAL_CHANNELS, 8, 8)

    # --- History planes (stored with bits reversed per byte) ---
    for idx, stored in enumerate(record.planes):
        mask = reverse_bits_in_bytes(stored)
        if mask == _ALL_SQUARES:
            planes[idx] = 1.0
        elif mask:
            planes[idx] = _mask_to_plane(mask)

    # --- Meta planes ---
    base = NUM_HISTORY_PLANES
    planes[base + 0] = float(record.castling_us_ooo)
    planes[base + 1] = float(record.castling_us_oo)
    planes[base + 2] = float(record.castling_them_ooo)
    planes[base + 3] = float(record.castling_them_oo)
    planes[base + 4] = float(record.side_to_move)
    planes[base + 5] = record.rule50_count / 100.0
    # base + 6 stays zero.
    planes[base + 7] = 1.0

    return planes
