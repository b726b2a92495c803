"""Unit tests for the hint_actions module."""

import unittest

import hanabi_helper
import hint_actions
from hanabi_helper import Card, Color, ColorRule, Game


class TestCommonCandidates(unittest.TestCase):
    """Tests for common_candidates()."""

    def test_intersection(self) -> None:
        game = Game.new_game(2)
        a = game.tile_at(0, 0)
        b = game.tile_at(0, 1)
        game.apply_hint([a], number=3)
        game.apply_hint([b], color=Color.BLUE)
        numbers, colors = hint_actions.common_candidates([b, game.tile_at(0, 2)])
        self.assertEqual(numbers, (1, 2, 4, 5))
        self.assertEqual(colors, ())

    def test_empty_group(self) -> None:
        self.assertEqual(hint_actions.common_candidates([]), ((), ()))


class TestPendingActions(unittest.TestCase):
    """Tests for completion rules of pending actions."""

    def setUp(self) -> None:
        self.game = Game.new_game(2)

    def test_hint_completes_on_one_choice(self) -> None:
        targets = (self.game.tile_at(0, 0),)
        self.assertFalse(hint_actions.HintAction(targets=targets, non_targets=()).is_complete)
        self.assertTrue(
            hint_actions.HintAction(targets=targets, non_targets=(), number=2).is_complete
        )

    def test_use_needs_both(self) -> None:
        tile = self.game.tile_at(0, 0)
        self.assertFalse(hint_actions.UseAction(tile, number=2).is_complete)
        self.assertTrue(hint_actions.UseAction(tile, number=2, color=Color.RED).is_complete)

    def test_known_dimension_counts(self) -> None:
        tile = self.game.tile_at(0, 0)
        self.game.apply_hint([tile], number=2)
        self.assertTrue(hint_actions.UseAction(tile, color=Color.RED).is_complete)
        self.assertTrue(hint_actions.FullRevealAction(tile, color=Color.RED).is_complete)


class TestActionSession(unittest.TestCase):
    """Tests for the ActionSession state machine."""

    def setUp(self) -> None:
        self.game = Game.new_game(2, ColorRule.STANDARD)
        self.session = hint_actions.ActionSession(self.game)
        self.hand = self.game.players[0].tiles

    def test_starts_idle(self) -> None:
        self.assertEqual(self.session.state, hint_actions.SessionState.IDLE)
        self.assertIsNone(self.session.pending)
        self.assertEqual(self.session.offered_numbers(), ())

    def test_hint_flow(self) -> None:
        action = self.session.begin_hint([self.hand[0]])
        self.assertEqual(len(action.non_targets), 4)
        self.assertEqual(self.session.state, hint_actions.SessionState.PENDING)
        report = self.session.choose_number(3)
        self.assertIsNotNone(report)
        self.assertEqual(self.session.state, hint_actions.SessionState.SETTLED)
        self.assertIsNone(self.session.pending)
        self.assertEqual(self.hand[0].numbers, (3,))
        self.assertEqual(self.hand[1].numbers, (1, 2, 4, 5))
        self.session.acknowledge()
        self.assertEqual(self.session.state, hint_actions.SessionState.IDLE)

    def test_choice_must_be_offered(self) -> None:
        self.session.begin_hint([self.hand[0]])
        self.session.choose_number(3)
        self.session.begin_hint([self.hand[0], self.hand[1]])
        self.assertEqual(self.session.offered_numbers(), ())
        with self.assertRaises(ValueError):
            self.session.choose_number(3)
        self.assertEqual(self.session.state, hint_actions.SessionState.PENDING)

    def test_only_one_pending(self) -> None:
        self.session.begin_hint([self.hand[0]])
        with self.assertRaises(ValueError):
            self.session.begin_hint([self.hand[1]])

    def test_cancel(self) -> None:
        self.session.begin_hint([self.hand[0]])
        self.session.cancel()
        self.assertEqual(self.session.state, hint_actions.SessionState.IDLE)
        self.assertEqual(len(self.game.history), 1)

    def test_choose_while_idle(self) -> None:
        with self.assertRaises(ValueError):
            self.session.choose_color(Color.RED)
        with self.assertRaises(ValueError):
            self.session.cancel()

    def test_hint_across_players_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.session.begin_hint([self.hand[0], self.game.tile_at(1, 0)])

    def test_use_unspecified_tile(self) -> None:
        tile = self.hand[0]
        self.assertIsNone(self.session.begin_use(tile))
        self.assertIsInstance(self.session.pending, hint_actions.UseAction)
        self.assertIsNone(self.session.choose_number(3))
        report = self.session.choose_color(Color.RED)
        self.assertIsNotNone(report)
        self.assertTrue(tile.is_used)
        self.assertEqual(tile.resolved_card, Card(3, Color.RED))
        self.assertEqual(report.used[Card(3, Color.RED)], 1)

    def test_use_partly_known_tile(self) -> None:
        tile = self.hand[0]
        self.game.apply_hint([tile], number=4)
        self.session.begin_use(tile)
        self.assertEqual(self.session.offered_numbers(), (4,))
        report = self.session.choose_color(Color.WHITE)
        self.assertIsNotNone(report)
        self.assertTrue(tile.is_used)
        self.assertEqual(self.game.used_count(4, Color.WHITE), 1)

    def test_use_specified_tile_directly(self) -> None:
        tile = self.hand[0]
        self.game.apply_hint([tile], number=2)
        self.game.apply_hint([tile], color=Color.GREEN)
        report = self.session.begin_use(tile)
        self.assertIsNotNone(report)
        self.assertTrue(tile.is_used)
        self.assertEqual(self.session.state, hint_actions.SessionState.SETTLED)

    def test_selection_flow(self) -> None:
        self.session.click_tile(self.hand[1])
        self.session.click_tile(self.hand[3])
        self.assertTrue(self.hand[1].is_selected)
        action = self.session.hint_selected()
        self.assertEqual(action.targets, (self.hand[1], self.hand[3]))
        self.assertEqual(self.game.players[0].selected_tiles(), [])
        self.session.choose_color(Color.YELLOW)
        self.assertEqual(self.hand[1].colors, (Color.YELLOW,))
        self.assertNotIn(Color.YELLOW, self.hand[0].colors)

    def test_use_selected_needs_one(self) -> None:
        with self.assertRaises(ValueError):
            self.session.use_selected()
        self.session.click_tile(self.hand[0])
        self.assertIsNone(self.session.use_selected())
        self.assertFalse(self.hand[0].is_selected)
        self.assertIsInstance(self.session.pending, hint_actions.UseAction)

    def test_spectator_reveal(self) -> None:
        tile = self.game.tile_at(1, 2)
        self.assertIsNone(self.session.click_tile(tile))
        self.assertIsInstance(self.session.pending, hint_actions.FullRevealAction)
        self.session.choose_color(Color.BLUE)
        report = self.session.choose_number(1)
        self.assertIsNotNone(report)
        self.assertEqual(tile.resolved_card, Card(1, Color.BLUE))
        self.assertFalse(tile.is_used)
        for other in self.game.players[1].tiles[:2]:
            self.assertEqual(other.colors, ColorRule.STANDARD.colors)

    def test_click_specified_spectator_tile_uses_it(self) -> None:
        tile = self.game.tile_at(1, 0)
        self.game.reveal(tile, 5, Color.GREEN)
        self.session.click_tile(tile)
        self.assertTrue(tile.is_used)
        self.assertEqual(self.game.used_count(5, Color.GREEN), 1)

    def test_reveal_own_tile_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.session.begin_reveal(self.hand[0])

    def test_undo(self) -> None:
        self.session.begin_hint([self.hand[0]])
        self.session.choose_number(5)
        self.session.begin_hint([self.hand[1]])
        report = self.session.undo()
        self.assertTrue(report.changed)
        self.assertIsNone(self.session.pending)
        self.assertEqual(self.hand[0].numbers, hanabi_helper.NUMBERS)


if __name__ == "__main__":
    unittest.main()
