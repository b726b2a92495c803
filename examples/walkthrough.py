"""Walk through a short two-player game with the Hanabi helper.

Gives the primary player a number clue and then a color clue on the
same tile, which pins it down and takes its card out of the pool. A
spectator reveal and a discard follow, then the last action is undone.
The board is printed after every step.
"""

import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import hanabi_helper
import hint_actions


def _show(title: str, game: hanabi_helper.Game, report: hanabi_helper.ActionReport | None) -> None:
    print(f"── {title} " + "─" * max(0, 56 - len(title)))
    if report is not None:
        resolved = ", ".join(
            f"P{v.player_index}[{v.slot_index}]={v.resolved_card}" for v in report.resolved
        )
        print(f"changed={report.changed} pool={report.pool_size}"
              + (f" resolved: {resolved}" if resolved else ""))
    print(game)
    print()


def main() -> None:
    game = hanabi_helper.Game.new_game(2, hanabi_helper.ColorRule.STANDARD)
    session = hint_actions.ActionSession(game)
    _show("New game", game, None)

    you = game.players[0]

    # "This is a 3" on your first tile.
    session.click_tile(you.tiles[0])
    session.hint_selected()
    report = session.choose_number(3)
    _show("Hint: tile A is a 3", game, report)

    # "This is red" on the same tile.
    session.click_tile(you.tiles[0])
    session.hint_selected()
    report = session.choose_color(hanabi_helper.Color.RED)
    _show("Hint: tile A is red", game, report)

    # Read the other player's first card off the table.
    session.click_tile(game.tile_at(1, 0))
    session.choose_number(5)
    report = session.choose_color(hanabi_helper.Color.BLUE)
    _show("Reveal: player 1 holds a blue 5", game, report)

    # They discard it.
    report = session.click_tile(game.tile_at(1, 0))
    _show("Player 1 discards the blue 5", game, report)

    report = session.undo()
    _show("Undo", game, report)


if __name__ == "__main__":
    main()
