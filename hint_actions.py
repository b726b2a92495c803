"""Pending actions collected from the display layer.

A hint, a use, or a spectator reveal is entered one choice at a time:
the player picks the tiles, then a number and/or a color. This module
models the action in progress as a small tagged union and drives it
through an explicit state machine (IDLE -> PENDING -> SETTLED -> IDLE),
applying it to the ``Game`` once enough has been chosen.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Sequence

from hanabi_helper import (
    PRIMARY_PLAYER,
    ActionReport,
    Color,
    Game,
    Tile,
)


# =============================================================================
# Enums
# =============================================================================

class SessionState(enum.Enum):
    """Where the session is in collecting an action."""
    IDLE = enum.auto()
    PENDING = enum.auto()
    SETTLED = enum.auto()


# =============================================================================
# Pending Actions
# =============================================================================

@dataclasses.dataclass(frozen=True)
class UseAction:
    """Play or discard one of the primary player's tiles.

    The tile's face is learned when it is used, so any dimension that is
    not already known has to be chosen first.

    Attributes:
        tile: The tile being used.
        number: The chosen number, if any.
        color: The chosen color, if any.
    """
    tile: Tile
    number: int | None = None
    color: Color | None = None

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return (self.tile,)

    @property
    def is_complete(self) -> bool:
        return _both_known(self.tiles, self.number, self.color)


@dataclasses.dataclass(frozen=True)
class HintAction:
    """A clue given to one player about some of their tiles.

    Attributes:
        targets: Tiles the clue points at.
        non_targets: The rest of that player's hand.
        number: The revealed number, if chosen.
        color: The revealed color, if chosen.
    """
    targets: tuple[Tile, ...]
    non_targets: tuple[Tile, ...]
    number: int | None = None
    color: Color | None = None

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return self.targets

    @property
    def is_complete(self) -> bool:
        """A clue reveals a single dimension, so one choice completes it."""
        return self.number is not None or self.color is not None


@dataclasses.dataclass(frozen=True)
class FullRevealAction:
    """A spectator reading another player's card off the table.

    Attributes:
        tile: The tile being revealed.
        number: The chosen number, if any.
        color: The chosen color, if any.
    """
    tile: Tile
    number: int | None = None
    color: Color | None = None

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return (self.tile,)

    @property
    def is_complete(self) -> bool:
        return _both_known(self.tiles, self.number, self.color)


PendingAction = UseAction | HintAction | FullRevealAction


def _both_known(
    tiles: Sequence[Tile], number: int | None, color: Color | None,
) -> bool:
    """Whether number and color are each chosen or already pinned down."""
    numbers, colors = common_candidates(tiles)
    number_known = number is not None or len(numbers) == 1
    color_known = color is not None or len(colors) == 1
    return number_known and color_known


def common_candidates(
    tiles: Sequence[Tile],
) -> tuple[tuple[int, ...], tuple[Color, ...]]:
    """Numbers and colors still possible for every tile in a group.

    These are the choices worth offering when an action covers the
    group: picking anything else would contradict what is known about
    at least one tile.

    Args:
        tiles: The tiles of the pending action (at least one).

    Returns:
        A ``(numbers, colors)`` pair in the first tile's order.
    """
    if not tiles:
        return (), ()
    numbers = tuple(n for n in tiles[0].numbers if all(n in t.numbers for t in tiles))
    colors = tuple(c for c in tiles[0].colors if all(c in t.colors for t in tiles))
    return numbers, colors


# =============================================================================
# Session
# =============================================================================

class ActionSession:
    """Collects one action at a time and applies it to a game.

    Attributes:
        game: The game actions are applied to.
        state: Current session state.
        pending: The action being collected, or None when idle.
        last_report: Report from the most recently settled action.
    """

    def __init__(self, game: Game) -> None:
        self.game = game
        self.state = SessionState.IDLE
        self.pending: PendingAction | None = None
        self.last_report: ActionReport | None = None

    # -----------------------------------------------------------------
    # Starting an action
    # -----------------------------------------------------------------

    def _begin(self, action: PendingAction) -> None:
        if self.state == SessionState.PENDING:
            raise ValueError("Another action is already pending")
        self.state = SessionState.PENDING
        self.pending = action

    def begin_hint(self, targets: Sequence[Tile]) -> HintAction:
        """Start a clue pointing at ``targets``.

        The non-targets are the rest of the owner's hand, fixed at this
        point.

        Raises:
            ValueError: If there are no targets, they span players, or
                another action is pending.
        """
        if not targets:
            raise ValueError("A hint must point at one or more tiles")
        owner = targets[0].player_index
        if any(t.player_index != owner for t in targets):
            raise ValueError("A hint cannot span more than one player")
        non_targets = tuple(
            t for t in self.game.players[owner].current_tiles()
            if all(t is not target for target in targets)
        )
        action = HintAction(targets=tuple(targets), non_targets=non_targets)
        self._begin(action)
        return action

    def begin_use(self, tile: Tile) -> ActionReport | None:
        """Use a tile, asking for its face only when it is not known.

        Returns:
            The report if the tile was specified and used right away,
            otherwise None (a ``UseAction`` is now pending).
        """
        if tile.is_specified:
            if self.state == SessionState.PENDING:
                raise ValueError("Another action is already pending")
            return self._settle(self.game.mark_used(tile))
        self._begin(UseAction(tile=tile))
        return None

    def begin_reveal(self, tile: Tile) -> FullRevealAction:
        """Start reading another player's card.

        Raises:
            ValueError: If the tile belongs to the primary player.
        """
        if tile.player_index == PRIMARY_PLAYER:
            raise ValueError("The primary player cannot see their own cards")
        action = FullRevealAction(tile=tile)
        self._begin(action)
        return action

    def hint_selected(self) -> HintAction:
        """Start a clue on the primary player's selected tiles."""
        player = self.game.players[PRIMARY_PLAYER]
        action = self.begin_hint(player.selected_tiles())
        player.clear_selected()
        return action

    def use_selected(self) -> ActionReport | None:
        """Use the primary player's single selected tile.

        Raises:
            ValueError: Unless exactly one tile is selected.
        """
        player = self.game.players[PRIMARY_PLAYER]
        selected = player.selected_tiles()
        if len(selected) != 1:
            raise ValueError(f"Exactly one tile must be selected, got {len(selected)}")
        tile = selected[0]
        tile.is_selected = False
        return self.begin_use(tile)

    def click_tile(self, tile: Tile) -> ActionReport | None:
        """Handle a click on a tile.

        The primary player's tiles toggle selection. Another player's
        tile is used when its identity is known, otherwise a reveal is
        started.
        """
        if tile.player_index == PRIMARY_PLAYER:
            tile.toggle_selected()
            return None
        if tile.is_specified:
            return self.begin_use(tile)
        self.begin_reveal(tile)
        return None

    # -----------------------------------------------------------------
    # Choices
    # -----------------------------------------------------------------

    def offered_numbers(self) -> tuple[int, ...]:
        if self.pending is None:
            return ()
        return common_candidates(self.pending.tiles)[0]

    def offered_colors(self) -> tuple[Color, ...]:
        if self.pending is None:
            return ()
        return common_candidates(self.pending.tiles)[1]

    def _require_pending(self) -> PendingAction:
        if self.state != SessionState.PENDING or self.pending is None:
            raise ValueError("No action is pending")
        return self.pending

    def choose_number(self, number: int) -> ActionReport | None:
        """Pick the number for the pending action.

        Returns:
            The report if this choice completed the action, else None.

        Raises:
            ValueError: If nothing is pending or the number is not
                offered.
        """
        action = self._require_pending()
        if number not in self.offered_numbers():
            raise ValueError(f"Number {number} is not possible for the selected tiles")
        self.pending = dataclasses.replace(action, number=number)
        return self._apply_if_complete()

    def choose_color(self, color: Color) -> ActionReport | None:
        """Pick the color for the pending action. See ``choose_number``."""
        action = self._require_pending()
        if color not in self.offered_colors():
            raise ValueError(f"Color {color.value} is not possible for the selected tiles")
        self.pending = dataclasses.replace(action, color=color)
        return self._apply_if_complete()

    def cancel(self) -> None:
        """Drop the pending action without applying it."""
        self._require_pending()
        self.state = SessionState.IDLE
        self.pending = None

    def acknowledge(self) -> None:
        """Return to idle after the display has consumed a settled report."""
        if self.state == SessionState.SETTLED:
            self.state = SessionState.IDLE

    def undo(self) -> ActionReport:
        """Undo the last settled action. Any pending action is dropped."""
        self.pending = None
        return self._settle(self.game.undo())

    # -----------------------------------------------------------------
    # Applying
    # -----------------------------------------------------------------

    def _apply_if_complete(self) -> ActionReport | None:
        action = self.pending
        if action is None or not action.is_complete:
            return None
        if isinstance(action, HintAction):
            report = self.game.apply_hint(
                action.targets, action.non_targets,
                number=action.number, color=action.color,
            )
        elif isinstance(action, UseAction):
            report = self.game.mark_used(action.tile, action.number, action.color)
        else:
            numbers, colors = common_candidates(action.tiles)
            number = action.number if action.number is not None else numbers[0]
            color = action.color if action.color is not None else colors[0]
            report = self.game.reveal(action.tile, number, color)
        self.pending = None
        return self._settle(report)

    def _settle(self, report: ActionReport) -> ActionReport:
        self.state = SessionState.SETTLED
        self.last_report = report
        return report
