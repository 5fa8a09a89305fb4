"""Engine score helpers for annotated games.

Pulls an evaluation out of a fishtest-style move comment such as
``{+0.35/12 0.41s}`` or ``{#-3/10 0.12s}`` and squashes it into an
expected outcome in [-1, 1].
"""

from __future__ import annotations

import math
import re
from typing import Optional

import chess

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Saturated magnitude used for forced mates (pawn units).
MATE_SCORE = 128.0

# Slope of the logistic squashing in ``score_to_outcome``.
OUTCOME_SLOPE = 0.4

# python-chess strips the braces from comments, so the opening marker is
# either a literal "{" or the start of the comment.
_SCORE_RE = re.compile(r"(?:^|\{)\s*([+-]?\d+\.\d+)/")
_MATE_RE = re.compile(r"(?:^|\{)\s*#([+-]?\d+)/")


# ---------------------------------------------------------------------------
# Score extraction
# ---------------------------------------------------------------------------

def extract_comment_score(comment: str) -> Optional[float]:
    """Return the engine score embedded in ``comment``, or ``None``.

    Parameters
    ----------
    comment:
        Raw comment text attached to a move, with or without braces.

    Returns
    -------
    float — the score in pawn units, or ``±MATE_SCORE`` for a mate-distance
    marker (negative when the distance starts with a minus sign).
    ``None`` when neither shape is present.
    """
    match = _SCORE_RE.search(comment)
    if match:
        return float(match.group(1))

    match = _MATE_RE.search(comment)
    if match:
        return -MATE_SCORE if match.group(1).startswith("-") else MATE_SCORE

    return None


def mate_score(mover: chess.Color) -> float:
    """Score for a move that delivers checkmate, from White's point of view."""
    return MATE_SCORE if mover == chess.WHITE else -MATE_SCORE


def score_to_outcome(score: float) -> float:
    """Map a raw score onto an expected outcome in [-1, 1]."""
    return 2.0 / (1.0 + math.exp(-OUTCOME_SLOPE * score)) - 1.0
