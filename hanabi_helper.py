"""Hanabi helper game model.

Core classes for tracking what each tile in a Hanabi hand could still
be. Every tile carries a set of candidate numbers and colors; hints and
direct assignments narrow those sets, and the shared pool of unseen
cards is used to eliminate identities that can no longer exist. When a
tile collapses to a single identity it takes the matching card out of
the pool, which may in turn narrow other tiles (fixed-point
propagation). Every settled action is snapshotted so it can be undone.
"""

from __future__ import annotations

import collections
import contextlib
import dataclasses
import enum
import functools
from collections.abc import Callable, Iterable, Iterator, Sequence


# =============================================================================
# ANSI Color Constants
# =============================================================================

class _Colors:
    """ANSI escape codes for terminal coloring."""
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    WHITE = "\033[97m"
    MAGENTA = "\033[95m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


# =============================================================================
# Game Tables
# =============================================================================

NUMBERS: tuple[int, ...] = (1, 2, 3, 4, 5)

# Copies of each number per color, independent of the color rule.
CARD_COUNTS: dict[int, int] = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}

# Hand size by player count.
HAND_SIZES: dict[int, int] = {2: 5, 3: 5, 4: 4, 5: 4}

PRIMARY_PLAYER = 0


# =============================================================================
# Exceptions
# =============================================================================

class InvariantViolation(Exception):
    """Raised when a caller breaks the tracking contract.

    These are programming errors in the calling sequence (for example,
    using a tile whose identity was never resolved), not valid game
    states. Public ``Game`` actions roll back to the last snapshot
    before re-raising, so no partial mutation is left behind.
    """


class CardNotFoundError(InvariantViolation):
    """Raised when the pool has no card matching a requested identity."""

    def __init__(self, number: int, color: Color) -> None:
        self.number = number
        self.color = color
        super().__init__(f"No {color.value} {number} remains in the pool")


# =============================================================================
# Enums
# =============================================================================

class Color(enum.Enum):
    """Color of a firework card."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    WHITE = "white"
    RAINBOW = "rainbow"

    def ansi(self) -> str:
        """Returns the ANSI color code for this card color."""
        return {
            Color.RED: _Colors.RED,
            Color.YELLOW: _Colors.YELLOW,
            Color.GREEN: _Colors.GREEN,
            Color.BLUE: _Colors.BLUE,
            Color.WHITE: _Colors.WHITE,
            Color.RAINBOW: _Colors.MAGENTA,
        }[self]

    @property
    def letter(self) -> str:
        """Single-letter label used in compact displays."""
        if self == Color.RAINBOW:
            return "M"
        return self.value[0].upper()


class ColorRule(enum.Enum):
    """Which colors are in play.

    STANDARD uses the five basic colors. RAINBOW adds a sixth,
    multicolor suit with the same number distribution.
    """
    STANDARD = "standard"
    RAINBOW = "rainbow"

    @property
    def colors(self) -> tuple[Color, ...]:
        """The ordered colors used under this rule."""
        standard = (Color.RED, Color.YELLOW, Color.GREEN, Color.BLUE, Color.WHITE)
        if self == ColorRule.RAINBOW:
            return standard + (Color.RAINBOW,)
        return standard


# =============================================================================
# Card
# =============================================================================

@functools.total_ordering
@dataclasses.dataclass(frozen=True)
class Card:
    """A physical firework card.

    Cards compare and hash by value only. Two copies of the red 3 are
    equal, but they remain distinct objects, which is how the pool keeps
    track of individual copies.

    Attributes:
        number: The number printed on the card (1-5).
        color: The card's color.
    """
    number: int
    color: Color

    @property
    def label(self) -> str:
        """Plain text label, e.g. ``R3``."""
        return f"{self.color.letter}{self.number}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        order = list(Color)
        return (order.index(self.color), self.number) < (
            order.index(other.color), other.number,
        )

    def __str__(self) -> str:
        return f"{self.color.ansi()}{self.label}{_Colors.RESET}"

    def __repr__(self) -> str:
        return f"Card({self.number}, {self.color.name})"


# =============================================================================
# Pool
# =============================================================================

@dataclasses.dataclass
class Pool:
    """The multiset of cards not yet bound to any tile.

    The contents are held in a tuple that is replaced, never mutated, so
    snapshots can share it with the live pool.

    Attributes:
        cards: Remaining cards in deal order (color-major, then number).
    """
    cards: tuple[Card, ...] = ()

    @classmethod
    def build(
        cls,
        numbers: Sequence[int],
        colors: Sequence[Color],
        counts: dict[int, int],
    ) -> Pool:
        """Create the full pool for a game.

        For every color, for every number, emits ``counts[number]``
        copies. No shuffling happens; the order is deterministic.

        Args:
            numbers: Numbers in play.
            colors: Colors in play.
            counts: Copies per number.

        Returns:
            A new Pool holding one Card object per physical card.
        """
        cards = [
            Card(number, color)
            for color in colors
            for number in numbers
            for _ in range(counts[number])
        ]
        return cls(cards=tuple(cards))

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def count(self, number: int, color: Color) -> int:
        """Number of remaining copies of one identity."""
        return self.count_matching(lambda c: c.number == number and c.color == color)

    def count_matching(self, predicate: Callable[[Card], bool]) -> int:
        """Number of remaining cards satisfying ``predicate``."""
        return sum(1 for c in self.cards if predicate(c))

    def identities(self) -> frozenset[tuple[int, Color]]:
        """The distinct ``(number, color)`` pairs still in the pool."""
        return frozenset((c.number, c.color) for c in self.cards)

    def remove_one(self, number: int, color: Color) -> Card:
        """Remove and return one card matching ``(number, color)``.

        Matching is by value, not by object identity.

        Args:
            number: The card number to remove.
            color: The card color to remove.

        Returns:
            The removed Card object.

        Raises:
            CardNotFoundError: If no such card remains.
        """
        for i, card in enumerate(self.cards):
            if card.number == number and card.color == color:
                self.cards = self.cards[:i] + self.cards[i + 1:]
                return card
        raise CardNotFoundError(number, color)


# =============================================================================
# Tile
# =============================================================================

@dataclasses.dataclass(eq=False)
class Tile:
    """A card slot in a player's hand, tracked as a possibility set.

    Attributes:
        player_index: Index of the owning player.
        slot_index: Position in the owner's hand (replacement tiles are
            appended, so this never changes).
        numbers: Candidate numbers, in game order. Never empty.
        colors: Candidate colors, in game order. Never empty.
        resolved_card: The pool card bound to this tile once it is
            specified, or None.
        is_used: Whether the tile has been played or discarded.
        is_selected: UI selection flag. Not part of the game state and
            never snapshotted.
    """
    player_index: int
    slot_index: int
    numbers: tuple[int, ...]
    colors: tuple[Color, ...]
    resolved_card: Card | None = None
    is_used: bool = False
    is_selected: bool = False

    @property
    def is_specified(self) -> bool:
        """Whether both candidate sets are singletons."""
        return len(self.numbers) == 1 and len(self.colors) == 1

    @property
    def is_resolved(self) -> bool:
        """Whether the tile has taken its card from the pool."""
        return self.resolved_card is not None

    @property
    def in_hand(self) -> bool:
        """Whether the tile is still held (not used)."""
        return not self.is_used

    @property
    def is_open(self) -> bool:
        """Whether the tile still takes part in propagation.

        Open tiles are unused and not yet bound to a card.
        """
        return not self.is_used and self.resolved_card is None

    def toggle_selected(self) -> None:
        self.is_selected = not self.is_selected

    def view(self) -> TileView:
        """Return an immutable view of this tile's observable state."""
        return TileView(
            player_index=self.player_index,
            slot_index=self.slot_index,
            numbers=self.numbers,
            colors=self.colors,
            is_used=self.is_used,
            resolved_card=self.resolved_card,
        )

    def __str__(self) -> str:
        if self.is_specified:
            color = self.colors[0]
            text = f"{color.ansi()}{color.letter}{self.numbers[0]}{_Colors.RESET}"
            if not self.is_resolved:
                text = f"{text}{_Colors.DIM}*{_Colors.RESET}"
        else:
            numbers = "".join(str(n) for n in self.numbers)
            colors = "".join(f"{c.ansi()}{c.letter}{_Colors.RESET}" for c in self.colors)
            text = f"{numbers}|{colors}"
        if self.is_used:
            return f"{_Colors.DIM}({text}{_Colors.DIM}){_Colors.RESET}"
        return f"[{text}]"


def recompute_possibilities(
    tile: Tile, pool: Pool,
) -> tuple[tuple[int, ...], tuple[Color, ...]]:
    """Narrow a tile's candidates against the cards left in the pool.

    A number survives if some pool card has that number and one of the
    tile's candidate colors; a color survives symmetrically. The result
    is always a subset of the tile's current sets. Either set may come
    back empty when no pool card fits the tile at all; the caller
    decides what to do with such a dead end.

    Args:
        tile: The tile to narrow.
        pool: The current pool.

    Returns:
        A ``(numbers, colors)`` pair in the tile's existing order.
    """
    present = pool.identities()
    numbers = tuple(
        n for n in tile.numbers
        if any((n, color) in present for color in tile.colors)
    )
    colors = tuple(
        color for color in tile.colors
        if any((n, color) in present for n in tile.numbers)
    )
    return numbers, colors


# =============================================================================
# Player
# =============================================================================

@dataclasses.dataclass
class Player:
    """A seat at the table and the tiles dealt to it.

    Attributes:
        index: Seat index. Player 0 is the primary player, whose own
            cards are hidden from them.
        tiles: Every tile this player has held, in deal order, used
            tiles included.
    """
    index: int
    tiles: list[Tile] = dataclasses.field(default_factory=list)

    @property
    def title(self) -> str:
        if self.index == PRIMARY_PLAYER:
            return "you"
        return f"player {self.index}"

    @property
    def is_primary(self) -> bool:
        return self.index == PRIMARY_PLAYER

    def new_tile(self, numbers: tuple[int, ...], colors: tuple[Color, ...]) -> Tile:
        """Append a fully unconstrained tile to the hand.

        Args:
            numbers: All numbers in play.
            colors: All colors in play.

        Returns:
            The new Tile.
        """
        tile = Tile(
            player_index=self.index,
            slot_index=len(self.tiles),
            numbers=numbers,
            colors=colors,
        )
        self.tiles.append(tile)
        return tile

    def current_tiles(self) -> list[Tile]:
        """Tiles still held in hand."""
        return [t for t in self.tiles if t.in_hand]

    def selected_tiles(self) -> list[Tile]:
        return [t for t in self.tiles if t.is_selected]

    def clear_selected(self) -> None:
        for tile in self.tiles:
            tile.is_selected = False

    def __str__(self) -> str:
        hand = " ".join(str(t) for t in self.current_tiles())
        return f"{_Colors.BOLD}{self.title}{_Colors.RESET}: {hand}"


# =============================================================================
# Snapshots and History
# =============================================================================

@dataclasses.dataclass(frozen=True)
class TileRecord:
    """The restorable part of a tile's state."""
    numbers: tuple[int, ...]
    colors: tuple[Color, ...]
    is_used: bool
    resolved_card: Card | None


@dataclasses.dataclass(frozen=True)
class Snapshot:
    """A settled, restorable copy of the game state.

    Tuples and Card objects are immutable, so a snapshot shares them
    with the live game and with neighboring snapshots instead of
    copying them.

    Attributes:
        pool: Pool contents at capture time.
        used: ``(card identity, count)`` pairs of the used tally.
        hands: Per player, a record for every tile in deal order.
    """
    pool: tuple[Card, ...]
    used: tuple[tuple[Card, int], ...]
    hands: tuple[tuple[TileRecord, ...], ...]

    @classmethod
    def capture(cls, game: Game) -> Snapshot:
        return cls(
            pool=game.pool.cards,
            used=tuple(sorted(game.used.items())),
            hands=tuple(
                tuple(
                    TileRecord(t.numbers, t.colors, t.is_used, t.resolved_card)
                    for t in player.tiles
                )
                for player in game.players
            ),
        )


@dataclasses.dataclass
class History:
    """Undo stack of settled snapshots.

    The first entry is the initial deal and is never removed.

    Attributes:
        entries: Snapshots in chronological order; the last one mirrors
            the live state.
    """
    entries: list[Snapshot] = dataclasses.field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def current(self) -> Snapshot:
        """The snapshot matching the live state."""
        return self.entries[-1]

    @property
    def can_undo(self) -> bool:
        return len(self.entries) >= 2

    def push(self, snapshot: Snapshot) -> None:
        self.entries.append(snapshot)

    def step_back(self) -> Snapshot | None:
        """Discard the current entry and return the one before it.

        The returned snapshot stays on the stack as the new current
        entry. Returns None when only the initial deal is left.
        """
        if not self.can_undo:
            return None
        self.entries.pop()
        return self.entries[-1]


# =============================================================================
# Reports
# =============================================================================

@dataclasses.dataclass(frozen=True)
class TileView:
    """Observable state of one tile, as reported to the display layer."""
    player_index: int
    slot_index: int
    numbers: tuple[int, ...]
    colors: tuple[Color, ...]
    is_used: bool
    resolved_card: Card | None

    @property
    def key(self) -> tuple[int, int]:
        return (self.player_index, self.slot_index)

    @property
    def is_specified(self) -> bool:
        return len(self.numbers) == 1 and len(self.colors) == 1

    @property
    def is_unresolvable(self) -> bool:
        """A specified, unused tile that never found its card."""
        return self.is_specified and not self.is_used and self.resolved_card is None


@dataclasses.dataclass(frozen=True)
class ActionReport:
    """What changed as the result of one action.

    Attributes:
        changed: Whether any observable state changed. False for no-ops.
        pool_changed: Whether the pool lost or regained cards.
        tiles: Views of tiles whose state differs from before the
            action, including newly added tiles.
        resolved: Views of tiles that were bound to a card by this action.
        removed: ``(player_index, slot_index)`` keys of tiles that no
            longer exist (replacement tiles dropped by undo).
        used: Used count for every card identity in play.
        remaining: Unused copies of every card identity in play.
        pool_size: Number of cards left in the pool.
    """
    changed: bool
    pool_changed: bool
    tiles: tuple[TileView, ...]
    resolved: tuple[TileView, ...]
    removed: tuple[tuple[int, int], ...]
    used: dict[Card, int]
    remaining: dict[Card, int]
    pool_size: int


# =============================================================================
# Game
# =============================================================================

@dataclasses.dataclass
class Game:
    """The complete tracking state for one game.

    Create instances with ``Game.new_game()``. The game holds no global
    state; callers keep the instance and pass it around.

    Attributes:
        player_count: Number of players (2-5).
        color_rule: Which colors are in play.
        numbers: Numbers in play.
        colors: Colors in play, in display order.
        hand_size: Tiles dealt to each player.
        pool: Cards not yet bound to a tile.
        players: All players, primary player first.
        used: Tally of used cards by identity.
        history: Undo stack of settled snapshots.
    """
    player_count: int
    color_rule: ColorRule
    numbers: tuple[int, ...]
    colors: tuple[Color, ...]
    hand_size: int
    pool: Pool
    players: list[Player]
    used: collections.Counter[Card] = dataclasses.field(
        default_factory=collections.Counter,
    )
    history: History = dataclasses.field(default_factory=History)

    @classmethod
    def new_game(
        cls, player_count: int, color_rule: ColorRule | str = ColorRule.STANDARD,
    ) -> Game:
        """Start tracking a freshly dealt game.

        Args:
            player_count: Number of players (2-5).
            color_rule: A ``ColorRule`` or its value ("standard" or
                "rainbow").

        Returns:
            A Game with full hands of unconstrained tiles, a full pool
            and the initial snapshot recorded.

        Raises:
            ValueError: If the player count or color rule is unsupported.
        """
        if player_count not in HAND_SIZES:
            raise ValueError(f"Player count must be 2-5, got {player_count}")
        rule = ColorRule(color_rule)
        colors = rule.colors
        game = cls(
            player_count=player_count,
            color_rule=rule,
            numbers=NUMBERS,
            colors=colors,
            hand_size=HAND_SIZES[player_count],
            pool=Pool.build(NUMBERS, colors, CARD_COUNTS),
            players=[Player(index=i) for i in range(player_count)],
        )
        for player in game.players:
            for _ in range(game.hand_size):
                player.new_tile(game.numbers, game.colors)
        game.snapshot()
        return game

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def tiles(self) -> list[Tile]:
        """All tiles, player-major then slot-major."""
        return [t for player in self.players for t in player.tiles]

    def open_tiles(self) -> list[Tile]:
        """Tiles that are unused and not yet bound to a card."""
        return [t for t in self.tiles if t.is_open]

    def unspecified_count(self) -> int:
        """Number of open tiles whose identity is not yet pinned down."""
        return sum(1 for t in self.open_tiles() if not t.is_specified)

    def unresolvable_tiles(self) -> list[Tile]:
        """Open tiles that are specified but have no card left to take."""
        return [t for t in self.open_tiles() if t.is_specified]

    def identities(self) -> list[Card]:
        """One Card per identity in play, in display order."""
        return [Card(n, c) for c in self.colors for n in self.numbers]

    def used_count(self, number: int, color: Color) -> int:
        return self.used[Card(number, color)]

    def remaining_count(self, number: int, color: Color) -> int:
        """Copies of an identity that have not been used yet."""
        return CARD_COUNTS[number] - self.used_count(number, color)

    def tile_at(self, player_index: int, slot_index: int) -> Tile:
        """Look up a tile by position.

        Raises:
            IndexError: If either index is out of range.
        """
        if not (0 <= player_index < len(self.players)):
            raise IndexError(f"Player index {player_index} out of range (0-{len(self.players) - 1})")
        tiles = self.players[player_index].tiles
        if not (0 <= slot_index < len(tiles)):
            raise IndexError(f"Slot index {slot_index} out of range (0-{len(tiles) - 1})")
        return tiles[slot_index]

    # -----------------------------------------------------------------
    # Propagation
    # -----------------------------------------------------------------

    def _settle_tile(self, tile: Tile) -> bool:
        """Narrow one tile against the pool and bind it if specified.

        Returns:
            True if the tile took a card out of the pool.
        """
        numbers, colors = recompute_possibilities(tile, self.pool)
        if not numbers or not colors:
            # Nothing in the pool fits: leave the tile as it is.
            return False
        tile.numbers = numbers
        tile.colors = colors
        if tile.is_specified and tile.resolved_card is None:
            tile.resolved_card = self.pool.remove_one(numbers[0], colors[0])
            return True
        return False

    def propagate(self) -> list[Tile]:
        """Re-derive every open tile until the pool stops changing.

        Each pass narrows all open tiles in player-major order and binds
        those that become specified. Any binding shrinks the pool, so
        another pass follows; a pass without a binding ends the loop.
        The pool is finite, so this always terminates.

        Returns:
            The tiles bound during propagation, in binding order.
        """
        bound: list[Tile] = []
        changed = True
        while changed:
            changed = False
            for tile in self.open_tiles():
                if self._settle_tile(tile):
                    bound.append(tile)
                    changed = True
        return bound

    # -----------------------------------------------------------------
    # Value assignment
    # -----------------------------------------------------------------

    def _check_tile(self, tile: Tile) -> None:
        players = self.players
        if (
            not (0 <= tile.player_index < len(players))
            or tile.slot_index >= len(players[tile.player_index].tiles)
            or players[tile.player_index].tiles[tile.slot_index] is not tile
        ):
            raise ValueError(f"Tile P{tile.player_index}[{tile.slot_index}] is not part of this game")

    def _check_number(self, number: int) -> None:
        if number not in self.numbers:
            raise ValueError(f"Number must be one of {list(self.numbers)}, got {number!r}")

    def _check_color(self, color: Color) -> None:
        if color not in self.colors:
            raise ValueError(f"Color {color!r} is not in play under the {self.color_rule.value} rule")

    def _check_values(self, number: int | None, color: Color | None) -> None:
        if number is not None:
            self._check_number(number)
        if color is not None:
            self._check_color(color)

    def set_number(self, tile: Tile, number: int) -> bool:
        """Assert that a tile has the given number.

        Args:
            tile: The tile being told its number.
            number: The number it has.

        Returns:
            True if the tile then took a card from the pool. Setting a
            number the tile already holds is a no-op returning False.

        Raises:
            InvariantViolation: If the number was already ruled out.
        """
        self._check_number(number)
        if tile.numbers == (number,):
            return False
        if number not in tile.numbers:
            raise InvariantViolation(
                f"Tile P{tile.player_index}[{tile.slot_index}] cannot be a {number}"
            )
        tile.numbers = (number,)
        return self._settle_tile(tile) if tile.is_open else False

    def set_not_number(self, tile: Tile, number: int) -> bool:
        """Rule a number out for a tile.

        Returns:
            True if the tile then took a card from the pool.

        Raises:
            InvariantViolation: If ``number`` is the tile's last candidate.
        """
        self._check_number(number)
        if number not in tile.numbers:
            return False
        if tile.numbers == (number,):
            raise InvariantViolation(
                f"Tile P{tile.player_index}[{tile.slot_index}] is known to be a {number}"
            )
        tile.numbers = tuple(n for n in tile.numbers if n != number)
        return self._settle_tile(tile) if tile.is_open else False

    def set_color(self, tile: Tile, color: Color) -> bool:
        """Assert that a tile has the given color. See ``set_number``."""
        self._check_color(color)
        if tile.colors == (color,):
            return False
        if color not in tile.colors:
            raise InvariantViolation(
                f"Tile P{tile.player_index}[{tile.slot_index}] cannot be {color.value}"
            )
        tile.colors = (color,)
        return self._settle_tile(tile) if tile.is_open else False

    def set_not_color(self, tile: Tile, color: Color) -> bool:
        """Rule a color out for a tile. See ``set_not_number``."""
        self._check_color(color)
        if color not in tile.colors:
            return False
        if tile.colors == (color,):
            raise InvariantViolation(
                f"Tile P{tile.player_index}[{tile.slot_index}] is known to be {color.value}"
            )
        tile.colors = tuple(c for c in tile.colors if c != color)
        return self._settle_tile(tile) if tile.is_open else False

    # -----------------------------------------------------------------
    # Snapshots
    # -----------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        """Record the live state on the undo stack."""
        snapshot = Snapshot.capture(self)
        self.history.push(snapshot)
        return snapshot

    def _restore(self, snapshot: Snapshot) -> None:
        """Install a snapshot into the live pool, tally and hands.

        Existing Tile objects are reused for slots present in the
        snapshot; slots added after it are dropped.
        """
        self.pool.cards = snapshot.pool
        self.used = collections.Counter(dict(snapshot.used))
        for player, records in zip(self.players, snapshot.hands):
            del player.tiles[len(records):]
            for slot_index, record in enumerate(records):
                if slot_index < len(player.tiles):
                    tile = player.tiles[slot_index]
                else:
                    tile = player.new_tile(record.numbers, record.colors)
                tile.numbers = record.numbers
                tile.colors = record.colors
                tile.is_used = record.is_used
                tile.resolved_card = record.resolved_card

    @contextlib.contextmanager
    def _rollback_on_violation(self) -> Iterator[None]:
        try:
            yield
        except InvariantViolation:
            self._restore(self.history.current)
            raise

    # -----------------------------------------------------------------
    # Actions
    # -----------------------------------------------------------------

    def _perform(self, action: Callable[[], None]) -> ActionReport:
        """Run an action to a settled state and record it.

        The action runs, propagation reaches its fixed point, and the
        result is snapshotted. Actions that change nothing are not
        recorded, so they never show up as an undo step.
        """
        before = self._views()
        pool_before = self.pool.cards
        used_before = dict(self.used)
        with self._rollback_on_violation():
            action()
            self.propagate()
        report = self._report(before, pool_before, used_before)
        if report.changed:
            self.snapshot()
        return report

    def assign(
        self,
        tiles: Iterable[Tile],
        number: int | None = None,
        color: Color | None = None,
    ) -> ActionReport:
        """Directly assert a number and/or color for each tile.

        No other tile is told anything; this is for ground truth learned
        outside of hints.

        Args:
            tiles: The tiles to update.
            number: The number to assert, if any.
            color: The color to assert, if any.

        Returns:
            The report for the settled action.

        Raises:
            ValueError: If neither value is given, or a tile or value is
                not part of this game.
            InvariantViolation: If a value was already ruled out.
        """
        tiles = list(tiles)
        if number is None and color is None:
            raise ValueError("Assignment needs a number or a color")
        self._check_values(number, color)
        for tile in tiles:
            self._check_tile(tile)

        def action() -> None:
            for tile in tiles:
                if number is not None:
                    self.set_number(tile, number)
                if color is not None:
                    self.set_color(tile, color)

        return self._perform(action)

    def assign_number(self, tiles: Iterable[Tile], number: int) -> ActionReport:
        return self.assign(tiles, number=number)

    def assign_color(self, tiles: Iterable[Tile], color: Color) -> ActionReport:
        return self.assign(tiles, color=color)

    def apply_hint(
        self,
        targets: Iterable[Tile],
        non_targets: Iterable[Tile] | None = None,
        number: int | None = None,
        color: Color | None = None,
    ) -> ActionReport:
        """Apply a clue given to one player.

        Every target is told it has the stated value(s); every
        non-target is told it does not.

        Args:
            targets: The tiles the clue points at.
            non_targets: The rest of the hand. Defaults to the owner's
                in-hand tiles that are not targets.
            number: The revealed number, if any.
            color: The revealed color, if any.

        Returns:
            The report for the settled action.

        Raises:
            ValueError: If no value is given, there are no targets, the
                tiles span several players, or a target is already used.
            InvariantViolation: If the clue contradicts what is known.
        """
        targets = list(targets)
        if number is None and color is None:
            raise ValueError("A hint must reveal a number or a color")
        if not targets:
            raise ValueError("A hint must point at one or more tiles")
        self._check_values(number, color)
        owner = targets[0].player_index
        if non_targets is None:
            non_targets = [
                t for t in self.players[owner].current_tiles()
                if all(t is not target for target in targets)
            ]
        else:
            non_targets = list(non_targets)
        for tile in targets + non_targets:
            self._check_tile(tile)
            if tile.is_used:
                raise ValueError(f"Tile P{tile.player_index}[{tile.slot_index}] is no longer in hand")
        if any(t.player_index != owner for t in targets + non_targets):
            raise InvariantViolation("A hint cannot span more than one player")

        def action() -> None:
            if number is not None:
                for tile in targets:
                    self.set_number(tile, number)
                for tile in non_targets:
                    self.set_not_number(tile, number)
            if color is not None:
                for tile in targets:
                    self.set_color(tile, color)
                for tile in non_targets:
                    self.set_not_color(tile, color)

        return self._perform(action)

    def reveal(self, tile: Tile, number: int, color: Color) -> ActionReport:
        """Record a card read off another player's hand.

        The tile is fully specified; the rest of that hand is not
        touched.

        Raises:
            ValueError: If the tile belongs to the primary player.
        """
        self._check_tile(tile)
        if tile.player_index == PRIMARY_PLAYER:
            raise ValueError("The primary player cannot see their own cards")
        return self.assign([tile], number=number, color=color)

    def mark_used(
        self,
        tile: Tile,
        number: int | None = None,
        color: Color | None = None,
    ) -> ActionReport:
        """Play or discard a tile.

        Any given number/color is asserted first, so an unspecified tile
        can be used once its face is seen. The tile must be bound to a
        card by then. Its card joins the used tally, and the owner gets
        a fresh tile if the pool can still fill one beyond the tiles
        already waiting for a card.

        Raises:
            InvariantViolation: If the tile is already used or never
                resolved.
        """
        self._check_tile(tile)
        self._check_values(number, color)

        def action() -> None:
            if tile.is_used:
                raise InvariantViolation(
                    f"Tile P{tile.player_index}[{tile.slot_index}] was already used"
                )
            if number is not None:
                self.set_number(tile, number)
            if color is not None:
                self.set_color(tile, color)
            if number is not None or color is not None:
                self.propagate()
            if tile.resolved_card is None:
                raise InvariantViolation(
                    f"Tile P{tile.player_index}[{tile.slot_index}] must be resolved before it is used"
                )
            tile.is_used = True
            card = tile.resolved_card
            self.used[Card(card.number, card.color)] += 1
            if len(self.pool) > self.unspecified_count():
                self.players[tile.player_index].new_tile(self.numbers, self.colors)

        return self._perform(action)

    def undo(self) -> ActionReport:
        """Step back to the previous settled state.

        A no-op when only the initial deal remains on the stack.
        """
        before = self._views()
        pool_before = self.pool.cards
        used_before = dict(self.used)
        snapshot = self.history.step_back()
        if snapshot is not None:
            self._restore(snapshot)
        return self._report(before, pool_before, used_before)

    # -----------------------------------------------------------------
    # Reporting
    # -----------------------------------------------------------------

    def _views(self) -> dict[tuple[int, int], TileView]:
        return {(t.player_index, t.slot_index): t.view() for t in self.tiles}

    def _report(
        self,
        before: dict[tuple[int, int], TileView],
        pool_before: tuple[Card, ...],
        used_before: dict[Card, int],
    ) -> ActionReport:
        after = self._views()
        changed_tiles = tuple(v for key, v in after.items() if before.get(key) != v)
        resolved = tuple(
            v for v in changed_tiles
            if v.resolved_card is not None
            and (v.key not in before or before[v.key].resolved_card is None)
        )
        removed = tuple(key for key in before if key not in after)
        pool_changed = pool_before != self.pool.cards
        used_changed = used_before != {k: v for k, v in self.used.items() if v}
        identities = self.identities()
        return ActionReport(
            changed=bool(changed_tiles or removed or pool_changed or used_changed),
            pool_changed=pool_changed,
            tiles=changed_tiles,
            resolved=resolved,
            removed=removed,
            used={card: self.used[card] for card in identities},
            remaining={card: self.remaining_count(card.number, card.color) for card in identities},
            pool_size=len(self.pool),
        )

    # -----------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------

    def __str__(self) -> str:
        lines = [
            f"{_Colors.BOLD}=== Hanabi Helper ==={_Colors.RESET}",
            f"Players: {self.player_count}  Rule: {self.color_rule.value}"
            f"  Pool: {len(self.pool)}",
            "",
        ]
        for player in self.players:
            lines.append(str(player))
        lines.append("")
        lines.append("Used / remaining:")
        for color in self.colors:
            cells = []
            for number in self.numbers:
                used = self.used_count(number, color)
                total = CARD_COUNTS[number]
                cells.append(f"{number}:{used}/{total}")
            lines.append(f"  {color.ansi()}{color.value:<8}{_Colors.RESET} {' '.join(cells)}")
        return "\n".join(lines)
