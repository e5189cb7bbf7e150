"""Constraint extraction and frontier partitioning."""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import DefaultDict, Deque, Dict, FrozenSet, List, Set, Tuple

from .board import BoardView
from .utils import Coord, row_major_key


@dataclass(frozen=True)
class Constraint:
    """Exactly ``required`` of ``cells`` are mines, as stated by ``source``."""

    source: Coord
    cells: FrozenSet[Coord]
    required: int


@dataclass(frozen=True)
class Component:
    """
    A maximal group of frontier cells linked through shared constraints.

    ``cells`` is in search order: breadth-first over the constraint graph,
    so that each constraint has all of its cells assigned as early as possible.
    """

    cells: Tuple[Coord, ...]
    constraints: Tuple[Constraint, ...]

    def __len__(self) -> int:
        return len(self.cells)


def build_constraints(board: BoardView) -> List[Constraint]:
    """
    Build one constraint per revealed cell that still borders an unknown cell.

    Flagged neighbors are assumed to be mines and are subtracted from the
    revealed number; the remainder is clamped at 0. Flags are player
    assertions and are not checked, so a wrong flag yields constraints that
    may have no solution.

    Args:
        board: Read-only board view.

    Returns:
        Constraints in row-major order of their source cell.
    """
    constraints: List[Constraint] = []
    for y in range(board.height):
        for x in range(board.width):
            cell = board.cell_at(x, y)
            if not cell.is_revealed or cell.is_mine:
                continue

            unknown: Set[Coord] = set()
            flagged = 0
            for nbr in board.adjacent_cells(x, y):
                if nbr.is_flagged:
                    flagged += 1
                elif not nbr.is_revealed:
                    unknown.add(nbr.coord)

            if not unknown:
                continue

            constraints.append(
                Constraint(
                    source=(x, y),
                    cells=frozenset(unknown),
                    required=max(0, cell.adjacent_mines - flagged),
                )
            )
    return constraints


def partition_components(constraints: List[Constraint]) -> List[Component]:
    """
    Split the frontier into independent components.

    Two frontier cells belong to the same component when some chain of
    constraints links them. Components come back ordered by their top-left
    cell so that results never depend on set iteration order.
    """
    # Bipartite view: frontier cell -> constraints that mention it.
    touching: DefaultDict[Coord, List[int]] = defaultdict(list)
    for idx, constraint in enumerate(constraints):
        for cell in constraint.cells:
            touching[cell].append(idx)

    seen_constraints: Set[int] = set()
    components: List[Component] = []

    for start in range(len(constraints)):
        if start in seen_constraints:
            continue

        queue: Deque[int] = deque([start])
        seen_constraints.add(start)
        ordered_cells: List[Coord] = []
        seen_cells: Set[Coord] = set()
        member_constraints: List[int] = []

        while queue:
            idx = queue.popleft()
            member_constraints.append(idx)

            for cell in sorted(constraints[idx].cells, key=row_major_key):
                if cell in seen_cells:
                    continue
                seen_cells.add(cell)
                ordered_cells.append(cell)

                for other in touching[cell]:
                    if other not in seen_constraints:
                        seen_constraints.add(other)
                        queue.append(other)

        components.append(
            Component(
                cells=tuple(ordered_cells),
                constraints=tuple(constraints[i] for i in sorted(member_constraints)),
            )
        )

    return sorted(components, key=lambda c: min(map(row_major_key, c.cells)))


def frontier_cells(components: List[Component]) -> Dict[Coord, int]:
    """Map every frontier cell to the index of its component."""
    owner: Dict[Coord, int] = {}
    for idx, component in enumerate(components):
        for cell in component.cells:
            owner[cell] = idx
    return owner
