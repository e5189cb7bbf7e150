"""
Minesweeper Hints

Mine-probability inference and move suggestions for a minesweeper board:
- Constraint extraction: one "exactly N of these cells" rule per revealed number
- Component enumeration: bounded stack search over independent frontier groups
- Global reconciliation: solutions weighted by interior mine placements
- Hint ranking: certain moves first, then the least risky reveal
"""

from .analysis import (
    calibration_table,
    collect_calibration_samples,
    format_probability_map,
    plot_calibration,
    run_hint_playthrough,
    run_many_playthroughs,
)
from .board import BoardSnapshot, BoardView, CellView
from .constraints import Component, Constraint, build_constraints, partition_components
from .engine import Minesweeper
from .hints import HintEngine, HintSuggestion, generate_hint
from .probability import (
    DEFAULT_NODE_BUDGET,
    EPSILON,
    ProbabilityCalculator,
    ProbabilityMap,
    SolveStats,
    compute_probabilities,
)

__version__ = "1.0.0"

__all__ = [
    # Board
    "BoardSnapshot",
    "BoardView",
    "CellView",
    # Constraints
    "Component",
    "Constraint",
    "build_constraints",
    "partition_components",
    # Probability engine
    "DEFAULT_NODE_BUDGET",
    "EPSILON",
    "ProbabilityCalculator",
    "ProbabilityMap",
    "SolveStats",
    "compute_probabilities",
    # Hint engine
    "HintEngine",
    "HintSuggestion",
    "generate_hint",
    # Benchmark boards
    "Minesweeper",
    # Analysis functions
    "calibration_table",
    "collect_calibration_samples",
    "format_probability_map",
    "plot_calibration",
    "run_hint_playthrough",
    "run_many_playthroughs",
]
