"""Text overlays, hint-following benchmarks and calibration plots."""

import random
from collections import defaultdict
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .board import BoardSnapshot, BoardView
from .engine import IN_PROGRESS, LOST, WON, Minesweeper
from .hints import FLAG, HintEngine, HintSuggestion
from .probability import DEFAULT_NODE_BUDGET, ProbabilityCalculator, ProbabilityMap
from .utils import Coord


def format_probability_map(
    board: BoardView,
    probabilities: Mapping[Coord, float],
    *,
    show_coords: bool = True,
) -> str:
    """
    Render a probability overlay as text.

    Revealed cells show their number, flags show ``F``, evaluated cells show
    their mine probability as a whole percentage and everything else ``.``.

    Args:
        board: Board the probabilities were computed for.
        probabilities: Cell -> mine probability.
        show_coords: If True, add coordinate labels and a header rule.
    """

    def cell_str(x: int, y: int) -> str:
        cell = board.cell_at(x, y)
        if cell.is_revealed:
            return str(cell.adjacent_mines)
        if cell.is_flagged:
            return "F"
        p = probabilities.get((x, y))
        if p is None:
            return "."
        return f"{round(p * 100):d}"

    width = 4
    lines: List[str] = []
    if show_coords:
        lines.append("    " + "".join(f"{x:>{width}d}" for x in range(board.width)))
        lines.append("    " + "-" * (width * board.width))

    for y in range(board.height):
        row = "".join(f"{cell_str(x, y):>{width}}" for x in range(board.width))
        lines.append(f"{y:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def _first_move(game: Minesweeper) -> Coord:
    if game.mines_generation_algorithm == "safe_first_action_rule":
        return 0, 0
    return game.width // 2, game.height // 2


def _follow_hints(
    game: Minesweeper,
    calculator: ProbabilityCalculator,
    engine: HintEngine,
) -> Iterator[Tuple[BoardSnapshot, ProbabilityMap, HintSuggestion, int]]:
    """
    Play a game by always taking the best hint.

    Yields (snapshot, probabilities, hint, status after the move) for every
    move after the opening reveal.
    """
    if game.reveal(*_first_move(game)) != IN_PROGRESS:
        return

    # Every move reveals or flags at least one cell.
    for _ in range(game.width * game.height):
        snapshot = game.snapshot()
        probabilities = calculator.calculate_probabilities(snapshot)
        hint = engine.generate_hint(snapshot, probabilities)
        if hint is None:
            return

        if hint.action == FLAG:
            game.toggle_flag(*hint.cell)
            status = IN_PROGRESS
        else:
            status = game.reveal(*hint.cell)

        yield snapshot, probabilities, hint, status
        if status != IN_PROGRESS:
            return


def run_hint_playthrough(
    width: int,
    height: int,
    mines_count: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    node_budget: int = DEFAULT_NODE_BUDGET,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Play one generated game by following the hint engine.

    Args:
        width: Board width.
        height: Board height.
        mines_count: Total number of mines on the board.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        seed: Seed for the mine layout.
        node_budget: Search budget handed to the probability calculator.
        show_boards: If True, print the final board with mines visible.

    Returns:
        Metrics: "status" (-1 loss, 0 unfinished, 1 win), "moves_count",
        "certain_moves", "guesses", "flags_placed", "approximated_computations",
        "max_component".
    """
    game = Minesweeper(
        width, height, mines_count, mines_generation_algorithm, rng=random.Random(seed)
    )
    calculator = ProbabilityCalculator(node_budget=node_budget)
    engine = HintEngine()

    metrics: Dict[str, int] = defaultdict(int)
    status = IN_PROGRESS
    for _, probabilities, hint, status in _follow_hints(game, calculator, engine):
        metrics["moves_count"] += 1
        if hint.confidence >= 1.0:
            metrics["certain_moves"] += 1
        else:
            metrics["guesses"] += 1
        if hint.action == FLAG:
            metrics["flags_placed"] += 1
        if probabilities.calculation_method == "approximate":
            metrics["approximated_computations"] += 1
        metrics["max_component"] = max(
            metrics["max_component"], probabilities.stats.largest_component
        )

    if game.game_over and game.safe_cells_left == 0 and status != LOST:
        status = WON

    if show_boards:
        print(game.format_board(reveal_all=True))
        print(f"\nFinished with status {status}.")

    out: Dict[str, object] = {
        key: metrics[key]
        for key in (
            "moves_count",
            "certain_moves",
            "guesses",
            "flags_placed",
            "approximated_computations",
            "max_component",
        )
    }
    out["status"] = status
    return out


def run_many_playthroughs(
    width: int,
    height: int,
    mines_count: int,
    runs: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    node_budget: int = DEFAULT_NODE_BUDGET,
) -> Dict[str, float]:
    """
    Run several hint-following games and average their metrics.

    Returns:
        "avg_<metric>" for every numeric metric of run_hint_playthrough, plus
        "win_rate" and "guess_success_rate".
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    seeds = random.Random(seed)
    sums: Dict[str, float] = defaultdict(float)
    wins = 0
    losses = 0

    for _ in range(runs):
        result = run_hint_playthrough(
            width,
            height,
            mines_count,
            mines_generation_algorithm,
            seed=seeds.randrange(2**32),
            node_budget=node_budget,
        )
        if result["status"] == WON:
            wins += 1
        elif result["status"] == LOST:
            losses += 1
        for key, value in result.items():
            if key != "status":
                sums[f"avg_{key}"] += float(value)  # type: ignore[arg-type]

    out = {key: total / runs for key, total in sums.items()}
    out["win_rate"] = wins / runs
    guesses = sums["avg_guesses"]
    out["guess_success_rate"] = 1.0 - losses / guesses if guesses > 0 else 1.0
    return out


def collect_calibration_samples(
    width: int,
    height: int,
    mines_count: int,
    games: int,
    mines_generation_algorithm: str = "safe_neighborhood_rule",
    *,
    seed: Optional[int] = None,
    node_budget: int = DEFAULT_NODE_BUDGET,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gather (predicted probability, actual mine) pairs from hint-following games.

    Every evaluated cell of every intermediate snapshot contributes one pair.

    Returns:
        Two equally long arrays: predicted probabilities (float) and actual
        outcomes (bool).
    """
    seeds = random.Random(seed)
    calculator = ProbabilityCalculator(node_budget=node_budget)
    engine = HintEngine()

    predicted: List[float] = []
    actual: List[bool] = []
    for _ in range(games):
        game = Minesweeper(
            width,
            height,
            mines_count,
            mines_generation_algorithm,
            rng=random.Random(seeds.randrange(2**32)),
        )
        for snapshot, probabilities, _, _ in _follow_hints(game, calculator, engine):
            for (x, y), p in probabilities.items():
                predicted.append(p)
                actual.append(snapshot.cell_at(x, y).is_mine)

    return np.asarray(predicted, dtype=float), np.asarray(actual, dtype=bool)


def calibration_table(
    predicted: np.ndarray, actual: np.ndarray, bins: int = 10
) -> Dict[str, np.ndarray]:
    """
    Bucket predictions and compare them with observed mine frequencies.

    Returns:
        "edges" (bins + 1), and per bin "count", "mean_predicted" and
        "observed" (NaN for empty bins).
    """
    predicted = np.asarray(predicted, dtype=float)
    actual = np.asarray(actual, dtype=float)
    if predicted.shape != actual.shape:
        raise ValueError("predicted and actual must have the same shape.")
    if bins <= 0:
        raise ValueError("bins must be positive.")

    edges = np.linspace(0.0, 1.0, bins + 1)
    idx = np.clip(np.digitize(predicted, edges[1:-1]), 0, bins - 1)

    count = np.bincount(idx, minlength=bins)
    pred_sum = np.bincount(idx, weights=predicted, minlength=bins)
    mine_sum = np.bincount(idx, weights=actual, minlength=bins)

    with np.errstate(invalid="ignore", divide="ignore"):
        mean_predicted = np.where(count > 0, pred_sum / count, np.nan)
        observed = np.where(count > 0, mine_sum / count, np.nan)

    return {
        "edges": edges,
        "count": count,
        "mean_predicted": mean_predicted,
        "observed": observed,
    }


def plot_calibration(
    predicted: np.ndarray,
    actual: np.ndarray,
    bins: int = 10,
    *,
    show: bool = True,
):
    """
    Draw a reliability diagram: predicted probability vs observed mine rate.

    Returns:
        The matplotlib Figure.
    """
    table = calibration_table(predicted, actual, bins)
    filled = table["count"] > 0

    fig = plt.figure()  # type: ignore[misc]
    plt.plot([0.0, 1.0], [0.0, 1.0], linestyle="--", color="gray", label="ideal")  # type: ignore[misc]
    plt.plot(  # type: ignore[misc]
        table["mean_predicted"][filled],
        table["observed"][filled],
        marker="o",
        label="engine",
    )
    plt.xlabel("Predicted mine probability")  # type: ignore[misc]
    plt.ylabel("Observed mine frequency")  # type: ignore[misc]
    plt.xlim(0.0, 1.0)  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title(f"Calibration over {int(table['count'].sum())} predictions")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    if show:
        plt.show()  # type: ignore[misc]
    return fig
