"""Randomized self-check for the Hanabi helper.

Deals real hidden cards, then plays random truthful hints, uses,
spectator reveals and undos through ``hanabi_helper.Game``. After every
action the tracker is checked against the hidden truth:

- every tile's candidates still include its real card, and a bound
  tile holds exactly that card;
- cards are conserved between the pool, bound tiles and the used tally;
- no tile is left specified but unbound while its card is in the pool;
- candidate sets only shrink between undos;
- undo restores exactly the state recorded before the undone action.

Prints aggregate statistics at the end.
"""

from __future__ import annotations

import dataclasses
import random

import tqdm

import hanabi_helper


@dataclasses.dataclass
class SimulationStats:
    """Counters aggregated over all simulated games."""
    games: int = 0
    actions: int = 0
    hints: int = 0
    uses: int = 0
    reveals: int = 0
    undos: int = 0
    direct_bindings: int = 0
    inferred_bindings: int = 0
    suppressed_replacements: int = 0

    def summary(self) -> str:
        lines = [
            f"Games:                  {self.games}",
            f"Actions:                {self.actions}",
            f"  hints:                {self.hints}",
            f"  uses:                 {self.uses}",
            f"  reveals:              {self.reveals}",
            f"  undos:                {self.undos}",
            f"Direct bindings:        {self.direct_bindings}",
            f"Inferred bindings:      {self.inferred_bindings}",
            f"Suppressed replacements:{self.suppressed_replacements:>3}",
        ]
        return "\n".join(lines)


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


# =============================================================================
# Table
# =============================================================================

@dataclasses.dataclass
class Table:
    """The hidden truth the tracker is not allowed to see.

    Attributes:
        game: The tracker under test.
        deck: Undealt cards, top of the deck last.
        faces: The real card behind every dealt tile.
        saved: ``(deck, faces)`` after every settled action, aligned
            with the game's undo stack.
    """
    game: hanabi_helper.Game
    deck: list[hanabi_helper.Card]
    faces: dict[tuple[int, int], hanabi_helper.Card]
    saved: list[tuple[tuple[hanabi_helper.Card, ...], dict[tuple[int, int], hanabi_helper.Card]]] = (
        dataclasses.field(default_factory=list)
    )

    @classmethod
    def deal(
        cls,
        rng: random.Random,
        player_count: int,
        color_rule: hanabi_helper.ColorRule,
    ) -> Table:
        game = hanabi_helper.Game.new_game(player_count, color_rule)
        deck = [
            hanabi_helper.Card(card.number, card.color) for card in game.pool
        ]
        rng.shuffle(deck)
        table = cls(game=game, deck=deck, faces={})
        for tile in game.tiles:
            table.faces[(tile.player_index, tile.slot_index)] = deck.pop()
        table.save()
        return table

    def save(self) -> None:
        self.saved.append((tuple(self.deck), dict(self.faces)))

    def face(self, tile: hanabi_helper.Tile) -> hanabi_helper.Card:
        return self.faces[(tile.player_index, tile.slot_index)]

    def in_hand(self) -> list[hanabi_helper.Tile]:
        return [t for t in self.game.tiles if t.in_hand]

    # -----------------------------------------------------------------
    # Checks
    # -----------------------------------------------------------------

    def check(self) -> None:
        game = self.game
        total = sum(hanabi_helper.CARD_COUNTS[n] for n in game.numbers) * len(game.colors)
        bound = [t for t in game.tiles if t.is_resolved and not t.is_used]
        _check(
            len(game.pool) + len(bound) + sum(game.used.values()) == total,
            "Card count is not conserved",
        )
        seen_ids = {id(card) for card in game.pool}
        for tile in game.tiles:
            face = self.face(tile)
            _check(
                face.number in tile.numbers and face.color in tile.colors,
                f"Tile P{tile.player_index}[{tile.slot_index}] lost its real card {face!r}",
            )
            if tile.resolved_card is not None:
                _check(tile.resolved_card == face, "Tile bound to the wrong card")
                _check(id(tile.resolved_card) not in seen_ids, "Card bound twice")
                seen_ids.add(id(tile.resolved_card))
            if tile.is_open and tile.is_specified:
                _check(
                    game.pool.count(tile.numbers[0], tile.colors[0]) == 0,
                    "Propagation stopped before its fixed point",
                )
        _check(
            hanabi_helper.Snapshot.capture(game) == game.history.current,
            "Live state differs from the latest snapshot",
        )


# =============================================================================
# Actions
# =============================================================================

def _give_hint(table: Table, rng: random.Random, stats: SimulationStats) -> hanabi_helper.ActionReport | None:
    player = rng.choice(table.game.players)
    hand = player.current_tiles()
    if not hand:
        return None
    clue_card = table.face(rng.choice(hand))
    if rng.random() < 0.5:
        targets = [t for t in hand if table.face(t).number == clue_card.number]
        report = table.game.apply_hint(targets, number=clue_card.number)
    else:
        targets = [t for t in hand if table.face(t).color == clue_card.color]
        report = table.game.apply_hint(targets, color=clue_card.color)
    stats.hints += 1
    stats.inferred_bindings += len(report.resolved)
    return report


def _use(table: Table, rng: random.Random, stats: SimulationStats) -> hanabi_helper.ActionReport | None:
    hand = table.in_hand()
    if not hand:
        return None
    tile = rng.choice(hand)
    face = table.face(tile)
    tiles_before = len(table.game.tiles)
    report = table.game.mark_used(tile, face.number, face.color)
    for view in report.tiles:
        if view.key not in table.faces:
            _check(bool(table.deck), "Replacement tile dealt from an empty deck")
            table.faces[view.key] = table.deck.pop()
    if len(table.game.tiles) == tiles_before:
        stats.suppressed_replacements += 1
    stats.uses += 1
    _count_bindings(report, tile, stats)
    return report


def _reveal(table: Table, rng: random.Random, stats: SimulationStats) -> hanabi_helper.ActionReport | None:
    hidden = [
        t for t in table.in_hand()
        if t.player_index != hanabi_helper.PRIMARY_PLAYER and not t.is_specified
    ]
    if not hidden:
        return None
    tile = rng.choice(hidden)
    face = table.face(tile)
    report = table.game.reveal(tile, face.number, face.color)
    stats.reveals += 1
    _count_bindings(report, tile, stats)
    return report


def _count_bindings(
    report: hanabi_helper.ActionReport,
    tile: hanabi_helper.Tile,
    stats: SimulationStats,
) -> None:
    for view in report.resolved:
        if view.key == (tile.player_index, tile.slot_index):
            stats.direct_bindings += 1
        else:
            stats.inferred_bindings += 1


def _undo(table: Table, stats: SimulationStats) -> None:
    game = table.game
    if not game.history.can_undo:
        return
    expected = game.history.entries[-2]
    game.undo()
    _check(hanabi_helper.Snapshot.capture(game) == expected, "Undo did not restore the prior state")
    table.saved.pop()
    deck, faces = table.saved[-1]
    table.deck = list(deck)
    table.faces = dict(faces)
    stats.undos += 1


def _check_narrowing(
    before: dict[tuple[int, int], tuple[frozenset, frozenset]],
    game: hanabi_helper.Game,
) -> None:
    for tile in game.tiles:
        key = (tile.player_index, tile.slot_index)
        if key not in before:
            continue
        numbers, colors = before[key]
        _check(
            set(tile.numbers) <= numbers and set(tile.colors) <= colors,
            f"Tile P{key[0]}[{key[1]}] regained a candidate",
        )


# =============================================================================
# Runner
# =============================================================================

def simulate_game(
    rng: random.Random,
    stats: SimulationStats,
    player_count: int,
    color_rule: hanabi_helper.ColorRule,
    max_actions: int = 200,
) -> Table:
    """Play one random game and check the tracker after every action."""
    table = Table.deal(rng, player_count, color_rule)
    table.check()
    for _ in range(max_actions):
        if not table.in_hand():
            break
        roll = rng.random()
        if roll < 0.1:
            _undo(table, stats)
        else:
            before = {
                (t.player_index, t.slot_index): (frozenset(t.numbers), frozenset(t.colors))
                for t in table.game.tiles
            }
            if roll < 0.5:
                report = _give_hint(table, rng, stats)
            elif roll < 0.8:
                report = _use(table, rng, stats)
            else:
                report = _reveal(table, rng, stats)
            if report is None:
                continue
            _check_narrowing(before, table.game)
            if report.changed:
                table.save()
        stats.actions += 1
        table.check()
    stats.games += 1
    return table


def main(num_games: int = 200, seed: int = 0) -> SimulationStats:
    """Simulate ``num_games`` random games and print statistics."""
    rng = random.Random(seed)
    stats = SimulationStats()
    for _ in tqdm.tqdm(
        range(num_games), desc="Simulating", unit=" games", dynamic_ncols=True,
    ):
        player_count = rng.choice(sorted(hanabi_helper.HAND_SIZES))
        color_rule = rng.choice(list(hanabi_helper.ColorRule))
        simulate_game(rng, stats, player_count, color_rule)
    print()
    print("=" * 60)
    print("HANABI HELPER SELF-CHECK")
    print("=" * 60)
    print(stats.summary())
    return stats


if __name__ == "__main__":
    main()
