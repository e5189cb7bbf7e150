import matplotlib

matplotlib.use("Agg")

import pytest

from minesweeper_hints import BoardSnapshot, CellView, HintEngine, ProbabilityCalculator


def with_flags(board, *cells):
    """Copy of ``board`` with extra flags on the given hidden cells."""
    rows = []
    for y in range(board.height):
        row = []
        for x in range(board.width):
            cell = board.cell_at(x, y)
            if (x, y) in cells:
                cell = CellView(x, y, is_flagged=True, is_mine=cell.is_mine)
            row.append(cell)
        rows.append(row)
    return BoardSnapshot(rows, board.mines_count)


@pytest.fixture
def calculator():
    return ProbabilityCalculator()


@pytest.fixture
def hint_engine():
    return HintEngine()


@pytest.fixture
def weighted_row():
    # (1,0) and (3,0) each see one mine: either (2,0) alone or (0,0)+(4,0).
    # (5,0)..(7,0) are interior.
    return BoardSnapshot.from_strings([".1.1...."], mines_count=2)


@pytest.fixture
def flag_cells():
    return with_flags
