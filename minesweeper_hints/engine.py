"""
Minimal game used to manufacture realistic board snapshots.

The probability and hint engines never touch this module; tests, the
analysis helpers and the examples use it to play boards forward and to take
frozen snapshots along the way.
"""

import random
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .board import BoardSnapshot, CellView
from .utils import Coord, get_neighborhoods

GENERATION_ALGORITHMS = ("safe_first_action_rule", "safe_neighborhood_rule")

# reveal() status codes
LOST = -1
IN_PROGRESS = 0
WON = 1


class Minesweeper:
    """Board with lazily placed mines, flood-fill reveals and flags."""

    def __init__(
        self,
        width: int,
        height: int,
        mines_count: int,
        mines_generation_algorithm: str = "safe_neighborhood_rule",
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Create a blank board; mines are placed on the first reveal.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            mines_count: Total number of mines, must be >= 0.
            mines_generation_algorithm: "safe_first_action_rule" keeps only the
                first revealed cell mine-free; "safe_neighborhood_rule" also
                keeps its neighbors mine-free.
            rng: Random source; pass a seeded Random for reproducible boards.

        Raises:
            ValueError: If dimensions, mine count or algorithm are invalid.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        if mines_generation_algorithm not in GENERATION_ALGORITHMS:
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )

        reserved = 1 if mines_generation_algorithm == "safe_first_action_rule" else 9
        if mines_count > width * height - reserved:
            raise ValueError(
                f"Cannot keep enough safe cells to satisfy {mines_generation_algorithm}."
            )

        self.width: int = width
        self.height: int = height
        self.mines_count: int = mines_count
        self.mines_generation_algorithm: str = mines_generation_algorithm
        self._rng = rng or random.Random()

        self._neighborhoods = get_neighborhoods(width, height)
        self.mines: FrozenSet[Coord] = frozenset()
        self.adjacent_counts: Dict[Coord, int] = {}
        self.revealed: Set[Coord] = set()
        self.flagged: Set[Coord] = set()
        self.mines_placed: bool = False
        self.game_over: bool = False

    @classmethod
    def from_layout(
        cls, width: int, height: int, mines: Iterable[Coord]
    ) -> "Minesweeper":
        """
        Create a board with fixed mine positions (no first-move protection).

        Raises:
            ValueError: If a mine lies outside the board or no safe cell is left.
        """
        mine_set = frozenset(mines)
        if any(not (0 <= x < width and 0 <= y < height) for x, y in mine_set):
            raise ValueError("Mine coordinates must lie on the board.")
        if len(mine_set) >= width * height:
            raise ValueError("At least one cell must be mine-free.")

        game = cls(width, height, 0, "safe_first_action_rule")
        game.mines_count = len(mine_set)
        game._set_mines(mine_set)
        return game

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        return self._neighborhoods[(x, y)]

    def _set_mines(self, mines: FrozenSet[Coord]) -> None:
        self.mines = mines
        self.adjacent_counts = {
            cell: sum(1 for n in nbrs if n in mines)
            for cell, nbrs in self._neighborhoods.items()
        }
        self.mines_placed = True

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Place mines once, keeping the first revealed cell (and, under the
        neighborhood rule, its neighbors) mine-free.

        Raises:
            ValueError: If mines were already placed.
        """
        if self.mines_placed:
            raise ValueError("Mines are already placed.")

        safe: Set[Coord] = {(first_x, first_y)}
        if self.mines_generation_algorithm == "safe_neighborhood_rule":
            safe.update(self.neighbors(first_x, first_y))

        eligible: List[Coord] = [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if (x, y) not in safe
        ]
        self._set_mines(frozenset(self._rng.sample(eligible, self.mines_count)))

    def flood_fill(self, x: int, y: int) -> List[Coord]:
        """Reveal (x, y) and cascade through zero cells; return newly revealed cells."""
        queue: Deque[Coord] = deque([(x, y)])
        visited: Set[Coord] = {(x, y)}
        newly_revealed: List[Coord] = []

        while queue:
            cell = queue.popleft()
            if cell in self.revealed or cell in self.flagged:
                continue

            self.revealed.add(cell)
            newly_revealed.append(cell)

            if self.adjacent_counts[cell] == 0:
                for nbr in self.neighbors(*cell):
                    if nbr not in visited and nbr not in self.revealed:
                        visited.add(nbr)
                        queue.append(nbr)

        return newly_revealed

    @property
    def safe_cells_left(self) -> int:
        return self.width * self.height - self.mines_count - len(self.revealed)

    def reveal(self, x: int, y: int) -> int:
        """
        Reveal a cell.

        Returns:
            LOST (-1) on a mine, WON (1) when every safe cell is revealed,
            IN_PROGRESS (0) otherwise, including no-op reveals.

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError("Cell coordinates are outside the board.")
        if self.game_over or (x, y) in self.revealed or (x, y) in self.flagged:
            return IN_PROGRESS

        if not self.mines_placed:
            self.place_mines(x, y)

        if (x, y) in self.mines:
            self.revealed.add((x, y))
            self.game_over = True
            return LOST

        self.flood_fill(x, y)
        if self.safe_cells_left == 0:
            self.game_over = True
            return WON
        return IN_PROGRESS

    def toggle_flag(self, x: int, y: int) -> bool:
        """
        Flag or unflag an unrevealed cell.

        Returns:
            True if the cell is flagged afterwards.

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError("Cell coordinates are outside the board.")
        if (x, y) in self.revealed:
            return False
        if (x, y) in self.flagged:
            self.flagged.remove((x, y))
            return False
        self.flagged.add((x, y))
        return True

    def snapshot(self) -> BoardSnapshot:
        """Freeze the visible state; true mine positions ride along as is_mine."""
        rows = []
        for y in range(self.height):
            row = []
            for x in range(self.width):
                cell = (x, y)
                is_revealed = cell in self.revealed
                row.append(
                    CellView(
                        x,
                        y,
                        is_revealed=is_revealed,
                        is_flagged=cell in self.flagged,
                        adjacent_mines=self.adjacent_counts.get(cell, 0)
                        if is_revealed
                        else 0,
                        is_mine=cell in self.mines,
                    )
                )
            rows.append(row)
        return BoardSnapshot(rows, self.mines_count)

    def format_board(self, reveal_all: bool = False) -> str:
        """
        Render the board as text with coordinate labels.

        Args:
            reveal_all: If True, show mines and every underlying number.
        """

        def cell_str(x: int, y: int) -> str:
            cell = (x, y)
            if reveal_all or cell in self.revealed:
                return "M" if cell in self.mines else str(self.adjacent_counts.get(cell, 0))
            return "F" if cell in self.flagged else "."

        lines = ["   " + " ".join(f"{x:2d}" for x in range(self.width))]
        lines.append("   " + "-" * (3 * self.width - 1))
        for y in range(self.height):
            lines.append(
                f"{y:2d} |" + " ".join(f" {cell_str(x, y)}" for x in range(self.width))
            )
        return "\n".join(lines)
