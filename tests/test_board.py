import pytest

from minesweeper_hints import BoardSnapshot, CellView


def test_from_strings_parses_symbols():
    board = BoardSnapshot.from_strings(["1F.", "2 . 0"], mines_count=2)

    assert (board.width, board.height, board.mines_count) == (3, 2, 2)
    assert board.cell_at(0, 0) == CellView(0, 0, is_revealed=True, adjacent_mines=1)
    assert board.cell_at(1, 0).is_flagged
    assert board.cell_at(2, 0).is_unknown
    assert board.cell_at(2, 1).is_revealed and board.cell_at(2, 1).adjacent_mines == 0
    assert board.flagged_count == 1
    assert board.to_strings() == ("1F.", "2.0")


def test_adjacent_cells_are_clipped_at_the_border():
    board = BoardSnapshot.from_strings(["...", "...", "..."], mines_count=1)

    assert len(board.adjacent_cells(0, 0)) == 3
    assert len(board.adjacent_cells(1, 0)) == 5
    assert len(board.adjacent_cells(1, 1)) == 8
    assert {c.coord for c in board.adjacent_cells(0, 0)} == {(1, 0), (0, 1), (1, 1)}


def test_iter_cells_is_row_major():
    board = BoardSnapshot.from_strings(["..", ".."], mines_count=1)
    assert [c.coord for c in board.iter_cells()] == [(0, 0), (1, 0), (0, 1), (1, 1)]


@pytest.mark.parametrize(
    "rows, mines_count",
    [
        (["..", "."], 1),  # ragged
        (["..", ".."], 4),  # mines fill the board
        (["..", ".."], -1),
        (["9."], 1),  # not a valid number
        (["1X"], 1),
        ([], 0),
    ],
)
def test_invalid_boards_are_rejected(rows, mines_count):
    with pytest.raises(ValueError):
        BoardSnapshot.from_strings(rows, mines_count)


def test_misplaced_cell_is_rejected():
    with pytest.raises(ValueError):
        BoardSnapshot([[CellView(1, 0), CellView(1, 0)]], mines_count=1)


def test_cell_at_out_of_bounds():
    board = BoardSnapshot.from_strings(["..", ".."], mines_count=1)
    with pytest.raises(ValueError):
        board.cell_at(2, 0)
    with pytest.raises(ValueError):
        board.cell_at(0, -1)


def test_snapshot_is_immutable():
    board = BoardSnapshot.from_strings(["1."], mines_count=1)
    with pytest.raises(AttributeError):
        board.mines_count = 0
    with pytest.raises(AttributeError):
        board.cell_at(0, 0).is_revealed = False


def test_equal_snapshots_hash_equal():
    a = BoardSnapshot.from_strings(["1.", "11"], mines_count=1)
    b = BoardSnapshot.from_strings(["1.", "11"], mines_count=1)
    assert a == b
    assert hash(a) == hash(b)
