"""Read-only board snapshots consumed by the probability and hint engines."""

from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Sequence, Tuple

from .utils import Coord, get_neighborhoods


@dataclass(frozen=True)
class CellView:
    """
    Immutable view of one board cell.

    ``adjacent_mines`` and ``is_mine`` are only meaningful for revealed cells.
    Benchmark snapshots also record ``is_mine`` on hidden cells so results can
    be scored; the engines never read it there.
    """

    x: int
    y: int
    is_revealed: bool = False
    is_flagged: bool = False
    adjacent_mines: int = 0
    is_mine: bool = False

    @property
    def coord(self) -> Coord:
        return (self.x, self.y)

    @property
    def is_unknown(self) -> bool:
        """True for an unrevealed, unflagged cell."""
        return not self.is_revealed and not self.is_flagged


class BoardView(Protocol):
    """
    Collaborator contract the engines read from.

    Implementations must not change while a computation is running.
    """

    width: int
    height: int
    mines_count: int

    def cell_at(self, x: int, y: int) -> CellView:
        ...

    def adjacent_cells(self, x: int, y: int) -> Sequence[CellView]:
        ...


class BoardSnapshot:
    """
    Frozen rectangular board implementing :class:`BoardView`.

    Cells are stored row-major as ``cells[y][x]``. Every accessor returns
    immutable values, so a snapshot can be shared between threads.
    """

    __slots__ = ("width", "height", "mines_count", "_cells", "_neighborhoods")

    def __init__(
        self,
        cells: Sequence[Sequence[CellView]],
        mines_count: int,
    ) -> None:
        """
        Build a snapshot from rows of cells.

        Args:
            cells: Rows of CellView, ``cells[y][x]``; each cell's coordinates
                must match its position.
            mines_count: Total mines on the board, flagged or not.

        Raises:
            ValueError: If the grid is empty, ragged, has misplaced cells, or
                mines_count is outside [0, width * height).
        """
        height = len(cells)
        width = len(cells[0]) if height else 0
        if width <= 0 or height <= 0:
            raise ValueError("Board must have at least one row and one column.")
        if any(len(row) != width for row in cells):
            raise ValueError("All board rows must have the same length.")
        if not 0 <= mines_count < width * height:
            raise ValueError("mines_count must be in [0, width * height).")

        frozen_rows = []
        for y, row in enumerate(cells):
            for x, cell in enumerate(row):
                if (cell.x, cell.y) != (x, y):
                    raise ValueError(
                        f"Cell {cell.coord} stored at position {(x, y)}."
                    )
            frozen_rows.append(tuple(row))

        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)
        object.__setattr__(self, "mines_count", mines_count)
        object.__setattr__(self, "_cells", tuple(frozen_rows))
        object.__setattr__(
            self, "_neighborhoods", get_neighborhoods(width, height)
        )

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("BoardSnapshot is immutable.")

    def __repr__(self) -> str:
        return (
            f"BoardSnapshot(width={self.width}, height={self.height}, "
            f"mines_count={self.mines_count})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardSnapshot):
            return NotImplemented
        return (
            self.mines_count == other.mines_count and self._cells == other._cells
        )

    def __hash__(self) -> int:
        return hash((self.mines_count, self._cells))

    @classmethod
    def from_strings(
        cls,
        rows: Sequence[str],
        mines_count: int,
        mines: Optional[Sequence[Coord]] = None,
    ) -> "BoardSnapshot":
        """
        Parse a board drawn as text.

        Symbols: ``.`` unrevealed, ``F`` flagged, ``0``-``8`` revealed with
        that adjacent-mine count. Whitespace inside a row is ignored.

        Args:
            rows: One string per row, top row first.
            mines_count: Total mines on the board.
            mines: Optional true mine positions, recorded on unrevealed cells
                only as ``is_mine`` for benchmarks; engines never read it for
                unrevealed cells.

        Raises:
            ValueError: On an unknown symbol or an invalid grid.
        """
        mine_set = set(mines or ())
        cells = []
        for y, raw in enumerate(rows):
            row = []
            for x, symbol in enumerate(raw.replace(" ", "")):
                if symbol == ".":
                    row.append(CellView(x, y, is_mine=(x, y) in mine_set))
                elif symbol == "F":
                    row.append(
                        CellView(x, y, is_flagged=True, is_mine=(x, y) in mine_set)
                    )
                elif symbol.isdigit() and int(symbol) <= 8:
                    row.append(
                        CellView(x, y, is_revealed=True, adjacent_mines=int(symbol))
                    )
                else:
                    raise ValueError(f"Unknown board symbol {symbol!r} at {(x, y)}.")
            cells.append(row)
        return cls(cells, mines_count)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> CellView:
        """
        Return the cell at (x, y).

        Raises:
            ValueError: If the coordinates are outside the board.
        """
        if not self.in_bounds(x, y):
            raise ValueError(f"Cell coordinates {(x, y)} are outside the board.")
        return self._cells[y][x]

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        """Return the precomputed neighbor coordinates of (x, y)."""
        return self._neighborhoods[(x, y)]

    def adjacent_cells(self, x: int, y: int) -> Tuple[CellView, ...]:
        """Return the up-to-8 boundary-clipped neighbors of (x, y)."""
        return tuple(self._cells[ny][nx] for nx, ny in self.neighbors(x, y))

    def iter_cells(self) -> Iterator[CellView]:
        """Yield every cell, top-left first, row by row."""
        for row in self._cells:
            yield from row

    @property
    def flagged_count(self) -> int:
        return sum(1 for cell in self.iter_cells() if cell.is_flagged)

    def to_strings(self) -> Tuple[str, ...]:
        """Inverse of :meth:`from_strings` (true mine positions are dropped)."""

        def symbol(cell: CellView) -> str:
            if cell.is_flagged:
                return "F"
            if cell.is_revealed:
                return str(cell.adjacent_mines)
            return "."

        return tuple("".join(symbol(cell) for cell in row) for row in self._cells)
