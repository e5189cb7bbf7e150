"""
Exact mine probabilities for a partially revealed board.

The frontier is split into independent components, every component is
enumerated with a bounded stack search, and the per-component solution
counts are reconciled against the global mine count by weighting each
combination with the number of ways to place the leftover mines among the
interior (unconstrained) cells.

All counting is done on Python integers; each probability is produced by a
single ``int / int`` division, so forced cells come out as exactly 0.0 or 1.0
and repeated calls on the same snapshot are bit-identical.

Flags are trusted: a flagged cell is treated as a mine. A wrong flag makes the
affected constraints unsatisfiable or skews the results; it is not repaired.
"""

import logging
import time
from collections import defaultdict
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from math import comb
from typing import (
    DefaultDict,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from .board import BoardView
from .constraints import (
    Component,
    build_constraints,
    frontier_cells,
    partition_components,
)
from .utils import Coord, clamp_probability, row_major_key

logger = logging.getLogger(__name__)

# Probabilities within EPSILON of 0 or 1 are treated as certain by callers.
EPSILON: float = 1e-4

# Search nodes allowed per component before falling back to the uniform estimate.
DEFAULT_NODE_BUDGET: int = 1 << 20

# Wall-clock budget is checked every this many nodes.
_TIME_CHECK_INTERVAL: int = 4096

# Mine-count distribution: total mines -> number of (weighted) solutions.
Distribution = Dict[int, int]


@dataclass(frozen=True)
class SolveStats:
    """Deterministic bookkeeping for one probability computation."""

    constraints_count: int = 0
    components_count: int = 0
    largest_component: int = 0
    nodes_explored: int = 0
    solutions_found: int = 0
    approximated_components: int = 0
    inconsistent_components: int = 0
    interior_cells: int = 0


class ProbabilityMap(Mapping[Coord, float]):
    """
    Sparse, read-only mapping from evaluated cells to mine probabilities.

    Only cells the engine actually evaluated are present; a missing cell is
    "unknown", not "safe". Iteration is row-major.
    """

    __slots__ = ("_cells", "calculation_method", "stats")

    def __init__(
        self,
        cell_probabilities: Dict[Coord, float],
        calculation_method: str,
        stats: SolveStats,
    ) -> None:
        self._cells: Dict[Coord, float] = {
            cell: cell_probabilities[cell]
            for cell in sorted(cell_probabilities, key=row_major_key)
        }
        self.calculation_method = calculation_method
        self.stats = stats

    @classmethod
    def empty(cls, stats: Optional[SolveStats] = None) -> "ProbabilityMap":
        return cls({}, "empty", stats or SolveStats())

    def __getitem__(self, cell: Coord) -> float:
        return self._cells[cell]

    def __iter__(self) -> Iterator[Coord]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return (
            f"ProbabilityMap({len(self._cells)} cells, "
            f"method={self.calculation_method!r})"
        )

    def certain_safe(self, epsilon: float = EPSILON) -> List[Coord]:
        """Cells whose mine probability is within epsilon of 0."""
        return [cell for cell, p in self._cells.items() if p <= epsilon]

    def certain_mines(self, epsilon: float = EPSILON) -> List[Coord]:
        """Cells whose mine probability is within epsilon of 1."""
        return [cell for cell, p in self._cells.items() if p >= 1.0 - epsilon]


@dataclass
class _ComponentResult:
    """Raw enumeration output for one component."""

    component: Component
    # "exact", "approximate" (budget overrun) or "inconsistent" (no solution)
    status: str
    nodes: int
    # total mines in the solution -> number of solutions
    mine_counts: Distribution
    # per cell index: total mines in the solution -> solutions where the cell is a mine
    cell_counts: List[Distribution]
    uniform_probability: float = 0.0

    @property
    def solutions(self) -> int:
        return sum(self.mine_counts.values())


def _convolve(a: Distribution, b: Distribution) -> Distribution:
    out: DefaultDict[int, int] = defaultdict(int)
    for ka, na in a.items():
        for kb, nb in b.items():
            out[ka + kb] += na * nb
    return dict(out)


def _ways(cells: int, mines: int) -> int:
    """Number of ways to place ``mines`` mines among ``cells`` cells."""
    if mines < 0 or mines > cells:
        return 0
    return comb(cells, mines)


def _local_density_estimate(component: Component) -> float:
    """
    Uniform mine probability for a component that could not be enumerated.

    Each cell takes the mean density ``required / len(cells)`` of the
    constraints around it; the component probability is the mean over cells.
    It stands in for the component's expected mine count divided by its size.
    """
    densities: DefaultDict[Coord, List[float]] = defaultdict(list)
    for constraint in component.constraints:
        density = constraint.required / len(constraint.cells)
        for cell in constraint.cells:
            densities[cell].append(density)

    per_cell = [sum(densities[cell]) / len(densities[cell]) for cell in component.cells]
    return clamp_probability(sum(per_cell) / len(per_cell))


def _enumerate_component(
    component: Component,
    mines_limit: int,
    node_budget: int,
    time_budget: Optional[float],
) -> _ComponentResult:
    """
    Count every assignment of the component that satisfies its constraints.

    The search walks the cells in component order with an explicit stack of
    ``(next cell index, mine bitset, mines used)`` frames. After each
    assignment only the constraints touching the assigned cell are checked:
    a branch dies when a constraint already holds too many mines or can no
    longer reach its required count.
    """
    cells = component.cells
    n = len(cells)
    index = {cell: i for i, cell in enumerate(cells)}

    masks: List[int] = []
    required: List[int] = []
    touching: List[List[int]] = [[] for _ in range(n)]
    for j, constraint in enumerate(component.constraints):
        mask = 0
        for cell in constraint.cells:
            i = index[cell]
            mask |= 1 << i
            touching[i].append(j)
        masks.append(mask)
        required.append(constraint.required)

    mine_counts: DefaultDict[int, int] = defaultdict(int)
    cell_counts: List[DefaultDict[int, int]] = [defaultdict(int) for _ in range(n)]

    deadline = None if time_budget is None else time.perf_counter() + time_budget
    stack: List[Tuple[int, int, int]] = [(0, 0, 0)]
    nodes = 0

    while stack:
        i, mines, used = stack.pop()
        nodes += 1
        if nodes > node_budget or (
            deadline is not None
            and nodes % _TIME_CHECK_INTERVAL == 0
            and time.perf_counter() > deadline
        ):
            return _ComponentResult(
                component=component,
                status="approximate",
                nodes=nodes,
                mine_counts={},
                cell_counts=[],
                uniform_probability=_local_density_estimate(component),
            )

        if i == n:
            mine_counts[used] += 1
            bits = mines
            while bits:
                lsb = bits & -bits
                cell_counts[lsb.bit_length() - 1][used] += 1
                bits ^= lsb
            continue

        unassigned = ~((1 << (i + 1)) - 1)
        # Pushed mine-first so the safe branch is explored first.
        for is_mine in (1, 0):
            candidate = mines | (is_mine << i)
            total = used + is_mine
            if total > mines_limit:
                continue

            feasible = True
            for j in touching[i]:
                placed = (candidate & masks[j]).bit_count()
                open_cells = (masks[j] & unassigned).bit_count()
                if placed > required[j] or placed + open_cells < required[j]:
                    feasible = False
                    break

            if feasible:
                stack.append((i + 1, candidate, total))

    status = "exact" if mine_counts else "inconsistent"
    return _ComponentResult(
        component=component,
        status=status,
        nodes=nodes,
        mine_counts=dict(mine_counts),
        cell_counts=[dict(counts) for counts in cell_counts],
    )


class ProbabilityCalculator:
    """
    Computes per-cell mine probabilities from a board snapshot.

    The calculator holds only immutable configuration, so one instance can
    serve any number of boards, including from several threads at once.
    """

    def __init__(
        self,
        node_budget: int = DEFAULT_NODE_BUDGET,
        time_budget: Optional[float] = None,
    ) -> None:
        """
        Configure the search limits.

        Args:
            node_budget: Maximum search nodes per component before the
                component is approximated uniformly.
            time_budget: Optional wall-clock seconds per component. Results
                then depend on machine speed, so it is off by default.

        Raises:
            ValueError: If a budget is not positive.
        """
        if isinstance(node_budget, bool) or not isinstance(node_budget, int):
            raise ValueError("node_budget must be an int.")
        if node_budget <= 0:
            raise ValueError("node_budget must be positive.")
        if time_budget is not None and time_budget <= 0:
            raise ValueError("time_budget must be positive or None.")

        self.node_budget = node_budget
        self.time_budget = time_budget

    def __repr__(self) -> str:
        return (
            f"ProbabilityCalculator(node_budget={self.node_budget}, "
            f"time_budget={self.time_budget})"
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def calculate_probabilities(self, board: BoardView) -> ProbabilityMap:
        """
        Compute the mine probability of every unrevealed, unflagged cell.

        Never mutates the board and never raises for a well-formed board.
        Components that exceed the search budget are approximated; components
        with no consistent assignment are left out of the result.

        Args:
            board: Read-only board view; must not change during the call.

        Returns:
            A fresh ProbabilityMap (empty when there is nothing to evaluate).
        """
        unknown: List[Coord] = []
        flagged = 0
        for y in range(board.height):
            for x in range(board.width):
                cell = board.cell_at(x, y)
                if cell.is_flagged:
                    flagged += 1
                elif not cell.is_revealed:
                    unknown.append((x, y))

        if not unknown:
            return ProbabilityMap.empty()

        remaining_mines = board.mines_count - flagged
        constraints = build_constraints(board)
        components = partition_components(constraints)
        owner = frontier_cells(components)
        interior = [cell for cell in unknown if cell not in owner]

        mines_limit = remaining_mines if remaining_mines >= 0 else len(owner)
        results = [
            _enumerate_component(c, mines_limit, self.node_budget, self.time_budget)
            for c in components
        ]

        for result in results:
            if result.status == "approximate":
                logger.info(
                    "Component of %d cells exceeded the search budget after %d "
                    "nodes; using uniform estimate %.4f.",
                    len(result.component),
                    result.nodes,
                    result.uniform_probability,
                )
            elif result.status == "inconsistent":
                logger.warning(
                    "Component of %d cells around %s has no consistent "
                    "assignment; its cells are left out.",
                    len(result.component),
                    result.component.constraints[0].source,
                )
            else:
                logger.debug(
                    "Component of %d cells: %d solutions in %d nodes.",
                    len(result.component),
                    result.solutions,
                    result.nodes,
                )

        cell_probabilities, interior_probability = self._reconcile(
            results, len(interior), remaining_mines
        )

        probabilities: Dict[Coord, float] = {}
        for cell in unknown:
            if cell in owner:
                if cell in cell_probabilities:
                    probabilities[cell] = cell_probabilities[cell]
            elif interior_probability is not None:
                probabilities[cell] = interior_probability

        stats = SolveStats(
            constraints_count=len(constraints),
            components_count=len(components),
            largest_component=max((len(c) for c in components), default=0),
            nodes_explored=sum(r.nodes for r in results),
            solutions_found=sum(r.solutions for r in results),
            approximated_components=sum(
                1 for r in results if r.status == "approximate"
            ),
            inconsistent_components=sum(
                1 for r in results if r.status == "inconsistent"
            ),
            interior_cells=len(interior),
        )

        if not probabilities:
            return ProbabilityMap.empty(stats)
        method = "approximate" if stats.approximated_components else "exact"
        return ProbabilityMap(probabilities, method, stats)

    def get_cell_probability(
        self, board: BoardView, x: int, y: int
    ) -> Optional[float]:
        """
        Compute the board and return the probability of a single cell.

        Returns:
            The cell's mine probability, or None when the cell is revealed,
            flagged, or was not evaluated.

        Raises:
            ValueError: If (x, y) is outside the board.
        """
        if not (0 <= x < board.width and 0 <= y < board.height):
            raise ValueError(f"Cell coordinates {(x, y)} are outside the board.")
        return self.calculate_probabilities(board).get((x, y))

    def submit(self, board: BoardView, executor: Executor) -> "Future[ProbabilityMap]":
        """Schedule :meth:`calculate_probabilities` on an executor."""
        return executor.submit(self.calculate_probabilities, board)

    # -------------------------------------------------------------------------
    # Reconciliation against the global mine count
    # -------------------------------------------------------------------------

    def _reconcile(
        self,
        results: List[_ComponentResult],
        interior_count: int,
        remaining_mines: int,
    ) -> Tuple[Dict[Coord, float], Optional[float]]:
        """
        Turn per-component counts into marginal probabilities.

        A component solution with ``k`` mines is weighted by the number of
        completions of the rest of the board: every combination ``t`` of the
        other components times ``C(interior, remaining - k - t)``.

        Returns:
            (frontier cell -> probability, interior probability or None when
            there are no interior cells).
        """
        usable = [r for r in results if r.status != "inconsistent"]

        distributions: List[Distribution] = []
        for result in usable:
            if result.status == "exact":
                distributions.append(result.mine_counts)
            else:
                n = len(result.component)
                fixed = min(n, max(0, round(result.uniform_probability * n)))
                distributions.append({fixed: 1})

        # prefix[i] = convolution of distributions[:i]; suffix[i] of distributions[i:]
        prefix: List[Distribution] = [{0: 1}]
        for dist in distributions:
            prefix.append(_convolve(prefix[-1], dist))
        suffix: List[Distribution] = [{0: 1}]
        for dist in reversed(distributions):
            suffix.append(_convolve(suffix[-1], dist))
        suffix.reverse()

        def completions(frontier_mines: int) -> int:
            return _ways(interior_count, remaining_mines - frontier_mines)

        probabilities: Dict[Coord, float] = {}
        budget_consistent = True

        for i, result in enumerate(usable):
            if result.status == "approximate":
                for cell in result.component.cells:
                    probabilities[cell] = result.uniform_probability
                continue

            others = _convolve(prefix[i], suffix[i + 1])
            weights: Dict[int, int] = {
                k: sum(n * completions(k + t) for t, n in others.items())
                for k in result.mine_counts
            }
            total = sum(result.mine_counts[k] * w for k, w in weights.items())

            if total == 0:
                # No solution fits the remaining mine count: fall back to raw counts.
                budget_consistent = False
                weights = {k: 1 for k in result.mine_counts}
                total = result.solutions

            for idx, cell in enumerate(result.component.cells):
                weighted = sum(
                    count * weights[k] for k, count in result.cell_counts[idx].items()
                )
                probabilities[cell] = weighted / total

        interior_probability: Optional[float] = None
        if interior_count > 0:
            overall = prefix[-1]
            denominator = sum(n * completions(t) for t, n in overall.items())
            if denominator:
                numerator = sum(
                    n * _ways(interior_count - 1, remaining_mines - t - 1)
                    for t, n in overall.items()
                )
                interior_probability = numerator / denominator
            else:
                budget_consistent = False
                solutions = sum(overall.values())
                expected = sum(t * n for t, n in overall.items()) / solutions
                interior_probability = clamp_probability(
                    (remaining_mines - expected) / interior_count
                )

        if not budget_consistent:
            logger.warning(
                "Remaining mine count %d is inconsistent with the revealed "
                "numbers; probabilities ignore the global mine count.",
                remaining_mines,
            )

        return probabilities, interior_probability


def compute_probabilities(
    board: BoardView,
    *,
    node_budget: int = DEFAULT_NODE_BUDGET,
    time_budget: Optional[float] = None,
) -> ProbabilityMap:
    """Compute mine probabilities with a one-off :class:`ProbabilityCalculator`."""
    return ProbabilityCalculator(
        node_budget=node_budget, time_budget=time_budget
    ).calculate_probabilities(board)
