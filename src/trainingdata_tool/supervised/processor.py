"""Convert one annotated game into V4 training records.

For every mainline move the processor validates the SAN token against the
current position, resolves the engine score from the move comment, builds a
record for eligible moves and then plays the move. Illegal tokens and
comments without a score end the game early; records written up to that
point are kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import chess
import chess.pgn

from .config import ConversionConfig
from .moves import contains_move, legal_canonical_moves, translate_move
from .pgn_reader import AnnotatedGame, MoveToken
from .records import GameResult, assemble_training_record
from .scoring import extract_comment_score, mate_score, score_to_outcome
from .writer import TrainingDataWriter

logger = logging.getLogger(__name__)

# Mistake, blunder, speculative and dubious moves are played but not learned.
BAD_MOVE_NAGS = frozenset({
    chess.pgn.NAG_MISTAKE,
    chess.pgn.NAG_BLUNDER,
    chess.pgn.NAG_SPECULATIVE_MOVE,
    chess.pgn.NAG_DUBIOUS_MOVE,
})

WriterFactory = Callable[[Path, int, int], TrainingDataWriter]


@dataclass
class GameCounter:
    """Running count of games that produced at least one record."""

    games_written: int = 0

    def partition(self, games_per_directory: int) -> int:
        return self.games_written // games_per_directory


class _StopGame(Exception):
    """Ends the move loop of the current game."""


def _parse_token(board: chess.Board, san: str) -> chess.Move:
    if san.startswith("0-0-0"):
        san = "O-O-O" + san[5:]
    elif san.startswith("0-0"):
        san = "O-O" + san[3:]
    move = board.parse_san(san)
    if not move:
        raise chess.IllegalMoveError(f"null move {san!r} is not a playable move")
    return move


def _delivers_mate(board: chess.Board, move: chess.Move) -> bool:
    board.push(move)
    try:
        return board.is_checkmate()
    finally:
        board.pop()


class GameProcessor:
    """Turns games into training chunks, one writer per written game.

    Parameters
    ----------
    config:
        Conversion settings.
    counter:
        Shared game counter; a fresh one is created when omitted.
    writer_factory:
        Called as ``writer_factory(output_dir, game_id, partition)`` when a
        game is about to produce its first record.
    """

    def __init__(
        self,
        config: ConversionConfig,
        counter: Optional[GameCounter] = None,
        writer_factory: WriterFactory = TrainingDataWriter,
    ) -> None:
        self.config = config
        self.counter = counter if counter is not None else GameCounter()
        self._writer_factory = writer_factory

    def _open_writer(self) -> TrainingDataWriter:
        game_id = self.counter.games_written
        partition = self.counter.partition(self.config.games_per_directory)
        writer = self._writer_factory(self.config.output_dir, game_id, partition)
        self.counter.games_written += 1
        return writer

    def _resolve_score(
        self,
        game: AnnotatedGame,
        token: MoveToken,
        board: chess.Board,
        move: chess.Move,
    ) -> Optional[float]:
        """Return the White-relative score for ``move`` or ``None`` to skip it.

        Raises ``_StopGame`` when the rest of the game must be abandoned.
        """
        if not token.comment:
            if self.config.fishtest_mode:
                logger.debug("Game %d: move %s has no comment, skipping rest of game",
                             game.index, token.san)
                raise _StopGame
            return None

        if _delivers_mate(board, move):
            return mate_score(board.turn)

        score = extract_comment_score(token.comment)
        if score is None:
            if self.config.skip_unscored_moves:
                logger.debug("Game %d: no score in comment %r, skipping move %s",
                             game.index, token.comment, token.san)
                return None
            logger.debug("Game %d: no score in comment %r, skipping rest of game",
                         game.index, token.comment)
            raise _StopGame
        return score

    def process(self, game: AnnotatedGame) -> int:
        """Convert ``game`` and return the number of records written."""
        if game.starting_fen is None:
            logger.warning("Skipping game %d: %s", game.index, "; ".join(game.errors))
            return 0

        board = game.starting_board()
        history: List[chess.Board] = [board.copy(stack=False)]
        game_result = GameResult.from_pgn(game.result)

        if self.config.verbose:
            logger.debug("Started new game %d, starting FEN: '%s'", game.index, game.starting_fen)
            logger.debug("Game result: %s", game.result)

        writer: Optional[TrainingDataWriter] = None
        records = 0
        try:
            for token in game.tokens:
                try:
                    move = _parse_token(board, token.san)
                except ValueError as exc:
                    logger.warning(
                        'illegal move "%s" in game %d at move %d%s: %s',
                        token.san, game.index, board.fullmove_number,
                        "." if board.turn == chess.WHITE else "...", exc,
                    )
                    break

                if self.config.verbose:
                    san = board.san(move)
                    logger.debug("Read move: %s", san)
                    if token.comment:
                        logger.debug("%s pgn comment: %s", san, token.comment)

                bad_move = any(nag in BAD_MOVE_NAGS for nag in token.nags)
                try:
                    score = self._resolve_score(game, token, board, move)
                except _StopGame:
                    break

                played = translate_move(move, board)
                legal_moves = legal_canonical_moves(board)
                if not contains_move(legal_moves, played):
                    logger.warning(
                        "Move not found: %s in game %d (%s, to-file %d)",
                        token.san, game.index, played.uci(),
                        chess.square_file(move.to_square),
                    )

                if not bad_move and score is not None:
                    try:
                        record = assemble_training_record(
                            game_result, history, played, legal_moves, score_to_outcome(score),
                        )
                    except ValueError as exc:
                        logger.warning(
                            "cannot encode move \"%s\" in game %d, skipping rest of game: %s",
                            token.san, game.index, exc,
                        )
                        break
                    if writer is None:
                        writer = self._open_writer()
                    writer.write_chunk(record)
                    records += 1

                board.push(move)
                history.append(board.copy(stack=False))
        finally:
            if writer is not None:
                writer.finalize()

        if self.config.verbose:
            logger.debug("Game end.")
        return records
