import os
import sys
import unittest

import chess

# --- Path Setup ---
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, os.path.join(project_root, "src"))

# --- Project Imports ---
from trainingdata_tool.supervised.moves import (
    POLICY_MOVES,
    POLICY_SIZE,
    CanonicalMove,
    build_move_probabilities,
    contains_move,
    legal_canonical_moves,
    translate_move,
)


class TestPolicyIndex(unittest.TestCase):

    def test_size_and_uniqueness(self):
        self.assertEqual(POLICY_SIZE, 1858)
        self.assertEqual(len(set(POLICY_MOVES)), 1858)

    def test_layout(self):
        self.assertEqual(POLICY_MOVES[0], "a1b1")
        self.assertEqual(POLICY_MOVES[1792], "a7a8q")
        self.assertEqual(POLICY_MOVES[-1], "h7h8b")

    def test_knight_promotion_shares_plain_index(self):
        knight = CanonicalMove(chess.A7, chess.A8, chess.KNIGHT)
        plain = CanonicalMove(chess.A7, chess.A8)
        queen = CanonicalMove(chess.A7, chess.A8, chess.QUEEN)
        self.assertEqual(knight.nn_index(), plain.nn_index())
        self.assertEqual(queen.nn_index(), POLICY_MOVES.index("a7a8q"))

    def test_every_legal_move_has_an_index(self):
        board = chess.Board("r3k2r/pPpp1ppp/8/4pP2/8/8/P1PPP1pP/R3K2R w KQkq e6 0 1")
        for move in legal_canonical_moves(board):
            self.assertLess(move.nn_index(), POLICY_SIZE)


class TestTranslateMove(unittest.TestCase):

    def test_white_move_is_unchanged(self):
        board = chess.Board()
        self.assertEqual(translate_move(chess.Move.from_uci("e2e4"), board),
                         CanonicalMove(chess.E2, chess.E4))

    def test_black_move_is_mirrored(self):
        board = chess.Board()
        board.push_san("e4")
        self.assertEqual(translate_move(chess.Move.from_uci("e7e5"), board),
                         CanonicalMove(chess.E2, chess.E4))

    def test_mirror_round_trip(self):
        board = chess.Board()
        board.push_san("d4")
        for move in board.legal_moves:
            canonical = translate_move(move, board).mirror()
            self.assertEqual(canonical.from_square, move.from_square)
            self.assertEqual(canonical.to_square, move.to_square)

    def test_promotion(self):
        board = chess.Board("8/P7/8/8/8/8/8/k6K w - - 0 1")
        canonical = translate_move(chess.Move.from_uci("a7a8q"), board)
        self.assertEqual(canonical.promotion, chess.QUEEN)
        self.assertEqual(canonical.uci(), "a7a8q")

    def test_standard_castling(self):
        board = chess.Board("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        self.assertEqual(translate_move(chess.Move.from_uci("e1g1"), board),
                         CanonicalMove(chess.E1, chess.G1, castling=True))
        self.assertEqual(translate_move(chess.Move.from_uci("e1c1"), board),
                         CanonicalMove(chess.E1, chess.C1, castling=True))

    def test_black_castling_is_mirrored(self):
        board = chess.Board("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
        self.assertEqual(translate_move(chess.Move.from_uci("e8g8"), board),
                         CanonicalMove(chess.E1, chess.G1, castling=True))

    def test_chess960_castling_normalised(self):
        board = chess.Board("4k3/8/8/8/8/8/8/R4K1R w HA - 0 1", chess960=True)
        short = chess.Move(chess.F1, chess.H1)
        long = chess.Move(chess.F1, chess.A1)
        self.assertIn(short, board.legal_moves)
        self.assertIn(long, board.legal_moves)
        self.assertEqual(translate_move(short, board),
                         CanonicalMove(chess.F1, chess.G1, castling=True))
        self.assertEqual(translate_move(long, board),
                         CanonicalMove(chess.F1, chess.C1, castling=True))

    def test_chess960_castle_with_king_on_castling_file(self):
        board = chess.Board("4k3/8/8/8/8/8/8/6KR w H - 0 1", chess960=True)
        castle = chess.Move(chess.G1, chess.H1)
        self.assertIn(castle, board.legal_moves)
        canonical = translate_move(castle, board)
        self.assertEqual(canonical, CanonicalMove(chess.G1, chess.H1, castling=True))
        self.assertEqual(canonical.nn_index(), POLICY_MOVES.index("g1h1"))
        for move in legal_canonical_moves(board):
            self.assertLess(move.nn_index(), POLICY_SIZE)

    def test_chess960_long_castle_with_king_on_castling_file(self):
        board = chess.Board("4k3/8/8/8/8/8/8/R1K5 w A - 0 1", chess960=True)
        castle = chess.Move(chess.C1, chess.A1)
        self.assertIn(castle, board.legal_moves)
        self.assertEqual(translate_move(castle, board),
                         CanonicalMove(chess.C1, chess.A1, castling=True))

    def test_king_step_is_not_castling(self):
        board = chess.Board("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        self.assertFalse(translate_move(chess.Move.from_uci("e1f1"), board).castling)


class TestMoveProbabilities(unittest.TestCase):

    def test_start_position(self):
        board = chess.Board()
        legal = legal_canonical_moves(board)
        played = translate_move(chess.Move.from_uci("e2e4"), board)
        probs = build_move_probabilities(legal, played)

        self.assertEqual(len(probs), POLICY_SIZE)
        self.assertEqual(probs.count(1.0), 1)
        self.assertEqual(probs.count(0.0), 19)
        self.assertEqual(probs.count(-1.0), POLICY_SIZE - 20)
        self.assertEqual(probs[played.nn_index()], 1.0)
        for move in legal:
            if move != played:
                self.assertEqual(probs[move.nn_index()], 0.0)

    def test_every_entry_is_a_label(self):
        board = chess.Board()
        board.push_san("Nf3")
        legal = legal_canonical_moves(board)
        played = translate_move(board.parse_san("d5"), board)
        self.assertTrue(set(build_move_probabilities(legal, played)) <= {-1.0, 0.0, 1.0})

    def test_contains_move_requires_castling_flag(self):
        board = chess.Board("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        legal = legal_canonical_moves(board)
        castle = CanonicalMove(chess.E1, chess.G1, castling=True)
        self.assertTrue(contains_move(legal, castle))
        self.assertFalse(contains_move(legal, CanonicalMove(chess.E1, chess.G1)))

    def test_chess960_king_step_and_castle_share_squares(self):
        # f1g1 is both a king step and the normalised short castle here.
        board = chess.Board("4k3/8/8/8/8/8/8/R4K1R w HA - 0 1", chess960=True)
        legal = legal_canonical_moves(board)
        self.assertTrue(contains_move(legal, translate_move(chess.Move(chess.F1, chess.G1), board)))
        self.assertTrue(contains_move(legal, translate_move(chess.Move(chess.F1, chess.H1), board)))
        self.assertTrue(contains_move(legal, CanonicalMove(chess.F1, chess.C1, castling=True)))
        self.assertFalse(contains_move(legal, CanonicalMove(chess.F1, chess.C1)))

    def test_missing_played_move_is_still_marked(self):
        board = chess.Board()
        legal = legal_canonical_moves(board)
        played = CanonicalMove(chess.E2, chess.E5)
        self.assertFalse(contains_move(legal, played))
        probs = build_move_probabilities(legal, played)
        self.assertEqual(probs[played.nn_index()], 1.0)
        self.assertEqual(probs.count(1.0), 1)


if __name__ == "__main__":
    unittest.main()
