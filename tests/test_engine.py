import random

import pytest

from minesweeper_hints import Minesweeper
from minesweeper_hints.engine import IN_PROGRESS, LOST, WON


def test_reveal_cascades_through_zeros():
    game = Minesweeper.from_layout(4, 3, [(3, 2)])

    assert game.reveal(0, 0) == WON
    assert (3, 2) not in game.revealed
    assert {(2, 1), (3, 1), (2, 2)} <= game.revealed
    assert game.safe_cells_left == 0


def test_win_and_loss():
    won = Minesweeper.from_layout(2, 1, [(1, 0)])
    assert won.reveal(0, 0) == WON
    assert won.game_over

    lost = Minesweeper.from_layout(3, 1, [(1, 0)])
    assert lost.reveal(1, 0) == LOST
    assert lost.reveal(0, 0) == IN_PROGRESS  # no-op after the game ends


def test_flags_block_reveals_and_toggle():
    game = Minesweeper.from_layout(3, 1, [(2, 0)])

    assert game.toggle_flag(2, 0) is True
    assert game.reveal(2, 0) == IN_PROGRESS
    assert (2, 0) not in game.revealed
    assert game.toggle_flag(2, 0) is False


def test_snapshot_matches_visible_state():
    game = Minesweeper.from_layout(3, 2, [(2, 0)])
    game.reveal(0, 0)
    game.toggle_flag(2, 0)

    board = game.snapshot()

    assert board.to_strings() == ("01F", "01.")
    assert board.mines_count == 1
    assert board.cell_at(2, 0).is_mine


@pytest.mark.parametrize(
    "algorithm, protected",
    [
        ("safe_first_action_rule", {(2, 2)}),
        ("safe_neighborhood_rule", {(x, y) for x in (1, 2, 3) for y in (1, 2, 3)}),
    ],
)
def test_first_reveal_is_protected(algorithm, protected):
    for seed in range(10):
        game = Minesweeper(5, 5, 12, algorithm, rng=random.Random(seed))
        assert game.reveal(2, 2) != LOST
        assert not protected & game.mines
        assert len(game.mines) == 12


def test_seeded_games_are_reproducible():
    a = Minesweeper(9, 9, 10, rng=random.Random(42))
    b = Minesweeper(9, 9, 10, rng=random.Random(42))
    a.reveal(4, 4)
    b.reveal(4, 4)
    assert a.mines == b.mines


@pytest.mark.parametrize(
    "args",
    [
        (0, 5, 1, "safe_first_action_rule"),
        (5, 5, -1, "safe_first_action_rule"),
        (5, 5, 1, "random"),
        (3, 3, 1, "safe_neighborhood_rule"),
        (3, 3, 9, "safe_first_action_rule"),
    ],
)
def test_invalid_games(args):
    with pytest.raises(ValueError):
        Minesweeper(*args)


def test_layout_validation():
    with pytest.raises(ValueError):
        Minesweeper.from_layout(2, 2, [(2, 0)])
    with pytest.raises(ValueError):
        Minesweeper.from_layout(1, 2, [(0, 0), (0, 1)])
