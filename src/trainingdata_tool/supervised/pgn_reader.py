"""Read annotated games from PGN files.

Each game is returned as its mainline move tokens (raw SAN text plus the
comment and NAGs that follow it). Moves are not validated here beyond what
the PGN parser needs to follow the game: the first token it cannot parse is
kept as the last token so the caller can report it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import chess
import chess.pgn

logger = logging.getLogger(__name__)


@dataclass
class MoveToken:
    san: str
    comment: str = ""
    nags: Tuple[int, ...] = ()


@dataclass(frozen=True)
class AnnotatedGame:
    index: int
    headers: chess.pgn.Headers
    starting_fen: Optional[str]
    result: str
    tokens: Tuple[MoveToken, ...]
    errors: Tuple[str, ...] = ()

    def starting_board(self) -> chess.Board:
        if self.starting_fen is None:
            raise ValueError(f"Game {self.index} has no valid starting position")
        return chess.Board(self.starting_fen, chess960=self.headers.is_chess960())


class _MoveTokenVisitor(chess.pgn.BaseVisitor["_ParsedGame"]):
    """Collects mainline tokens without building a game tree."""

    def __init__(self) -> None:
        self._headers = chess.pgn.Headers()
        self._tokens: List[MoveToken] = []
        self._errors: List[str] = []
        self._pending_san = ""

    def begin_headers(self) -> chess.pgn.Headers:
        return self._headers

    def visit_header(self, tagname: str, tagvalue: str) -> None:
        self._headers[tagname] = tagvalue

    def begin_variation(self) -> chess.pgn.SkipType:
        return chess.pgn.SKIP

    def parse_san(self, board: chess.Board, san: str) -> chess.Move:
        self._pending_san = san
        try:
            return super().parse_san(board, san)
        except ValueError:
            self._tokens.append(MoveToken(san))
            raise

    def visit_move(self, board: chess.Board, move: chess.Move) -> None:
        self._tokens.append(MoveToken(self._pending_san))

    def visit_comment(self, comment: Union[str, List[str]]) -> None:
        if not self._tokens:
            return
        parts = [comment] if isinstance(comment, str) else list(comment)
        token = self._tokens[-1]
        token.comment = " ".join(p for p in [token.comment, *parts] if p)

    def visit_nag(self, nag: int) -> None:
        if self._tokens:
            self._tokens[-1].nags += (nag,)

    def handle_error(self, error: Exception) -> None:
        self._errors.append(str(error))

    def result(self) -> "_ParsedGame":
        return _ParsedGame(self._headers, tuple(self._tokens), tuple(self._errors))


@dataclass
class _ParsedGame:
    headers: chess.pgn.Headers
    tokens: Tuple[MoveToken, ...]
    errors: Tuple[str, ...] = field(default_factory=tuple)


class PgnReader:
    """Iterate over the games of one PGN file.

    Usage::

        with PgnReader("games.pgn") as reader:
            for game in reader:
                ...
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._handle = None

    def open(self) -> "PgnReader":
        logger.debug("Opening '%s'", self.path)
        self._handle = open(self.path, encoding="utf-8-sig", errors="replace")
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "PgnReader":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[AnnotatedGame]:
        if self._handle is None:
            raise RuntimeError("PgnReader is not open")

        index = 0
        while True:
            parsed = chess.pgn.read_game(self._handle, Visitor=_MoveTokenVisitor)
            if parsed is None:
                return
            index += 1
            yield self._to_game(index, parsed)

    @staticmethod
    def _to_game(index: int, parsed: _ParsedGame) -> AnnotatedGame:
        errors = list(parsed.errors)
        try:
            starting_fen: Optional[str] = parsed.headers.board().fen()
        except ValueError as exc:
            starting_fen = None
            errors.append(f"invalid starting position: {exc}")

        return AnnotatedGame(
            index=index,
            headers=parsed.headers,
            starting_fen=starting_fen,
            result=parsed.headers.get("Result", "*"),
            tokens=parsed.tokens,
            errors=tuple(errors),
        )
