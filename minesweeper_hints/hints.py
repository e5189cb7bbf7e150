"""Move suggestions derived from a probability map."""

import functools
import logging
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional, Tuple

from .board import BoardView
from .probability import EPSILON
from .utils import Coord

logger = logging.getLogger(__name__)

# Information-gain heuristic weights.
CASCADE_PROBABILITY = 0.3
CASCADE_MEAN_NUMBER_LIMIT = 2.0
CONSTRAINT_WEIGHT = 0.5
REVEALED_NEIGHBOR_WEIGHT = 0.2
FRONTIER_BONUS = 0.5

# Confidence and information gain closer than this are considered equal.
RANKING_TOLERANCE = 0.01

REVEAL = "reveal"
FLAG = "flag"


@dataclass(frozen=True)
class HintSuggestion:
    """One suggested move with its justification."""

    cell: Coord
    action: str
    confidence: float
    reasoning: str
    expected_information: float


def _compare_moves(a: HintSuggestion, b: HintSuggestion) -> int:
    if abs(a.confidence - b.confidence) > RANKING_TOLERANCE:
        return -1 if a.confidence > b.confidence else 1
    if abs(a.expected_information - b.expected_information) > RANKING_TOLERANCE:
        return -1 if a.expected_information > b.expected_information else 1
    if a.action != b.action:
        return -1 if a.action == REVEAL else 1
    (ax, ay), (bx, by) = a.cell, b.cell
    if ay != by:
        return ay - by
    return ax - bx


class HintEngine:
    """
    Ranks candidate moves from mine probabilities.

    Certain moves (probability within ``epsilon`` of 0 or 1) always win; when
    none exist the least risky reveal is suggested.
    """

    def __init__(self, epsilon: float = EPSILON) -> None:
        """
        Args:
            epsilon: Distance from 0 or 1 under which a probability counts as
                certain. Must be in (0, 0.5).

        Raises:
            ValueError: If epsilon is out of range.
        """
        if not 0.0 < epsilon < 0.5:
            raise ValueError("epsilon must be in (0, 0.5).")
        self.epsilon = epsilon

    def generate_hint(
        self, board: BoardView, probabilities: Mapping[Coord, float]
    ) -> Optional[HintSuggestion]:
        """
        Return the single best move, or None if nothing was evaluated.

        Args:
            board: The snapshot the probabilities were computed from.
            probabilities: Cell -> mine probability; cells missing from it are
                never suggested.
        """
        certain = self.find_certain_moves(board, probabilities)
        if certain:
            return self.rank_moves(certain)[0]
        return self.find_best_probabilistic_move(board, probabilities)

    def rank_suggestions(
        self, board: BoardView, probabilities: Mapping[Coord, float]
    ) -> List[HintSuggestion]:
        """Every evaluated unknown cell as a suggestion, best first."""
        moves: List[HintSuggestion] = []
        for cell, probability in self._candidates(board, probabilities):
            certain = self._certain_move(board, cell, probability)
            if certain is not None:
                moves.append(certain)
                continue
            x, y = cell
            moves.append(
                HintSuggestion(
                    cell=cell,
                    action=REVEAL,
                    confidence=max(0.0, 1.0 - probability),
                    reasoning=(
                        f"This cell has a {probability * 100:.2f}% chance of "
                        "containing a mine."
                    ),
                    expected_information=self.calculate_information_gain(board, x, y),
                )
            )
        return self.rank_moves(moves)

    def find_certain_moves(
        self, board: BoardView, probabilities: Mapping[Coord, float]
    ) -> List[HintSuggestion]:
        """
        Collect certainly-safe reveals and certainly-mined flags.

        Returns:
            Suggestions in row-major order, confidence 1.0 each.
        """
        moves: List[HintSuggestion] = []
        for cell, probability in self._candidates(board, probabilities):
            move = self._certain_move(board, cell, probability)
            if move is not None:
                moves.append(move)
        return moves

    def find_best_probabilistic_move(
        self, board: BoardView, probabilities: Mapping[Coord, float]
    ) -> Optional[HintSuggestion]:
        """
        Suggest revealing the evaluated cell with the lowest mine probability.

        The first cell at the minimum in row-major order wins.
        """
        best_cell: Optional[Coord] = None
        lowest = 0.0
        for cell, probability in self._candidates(board, probabilities):
            if best_cell is None or probability < lowest:
                best_cell, lowest = cell, probability

        if best_cell is None:
            return None

        x, y = best_cell
        return HintSuggestion(
            cell=best_cell,
            action=REVEAL,
            confidence=max(0.0, 1.0 - lowest),
            reasoning=(
                "This is the safest available move with a "
                f"{lowest * 100:.2f}% chance of containing a mine."
            ),
            expected_information=self.calculate_information_gain(board, x, y),
        )

    def calculate_information_gain(self, board: BoardView, x: int, y: int) -> float:
        """
        Estimate how much revealing (x, y) would tell the player.

        The estimate is the cell itself, plus a cascade term when the
        surrounding numbers are low, plus a term per unknown neighbor, plus a
        term per revealed neighbor, plus a flat bonus for frontier cells. It
        is a ranking heuristic, not a probability; it is 0 for revealed or
        flagged cells and positive otherwise.
        """
        cell = board.cell_at(x, y)
        if cell.is_revealed or cell.is_flagged:
            return 0.0

        adjacent = board.adjacent_cells(x, y)
        unknown = sum(1 for c in adjacent if c.is_unknown)
        revealed = [c for c in adjacent if c.is_revealed]

        if revealed:
            mean_number = sum(c.adjacent_mines for c in revealed) / len(revealed)
        else:
            mean_number = board.mines_count / (board.width * board.height)

        gain = 1.0
        if mean_number < CASCADE_MEAN_NUMBER_LIMIT:
            gain += unknown * CASCADE_PROBABILITY
        gain += unknown * CONSTRAINT_WEIGHT
        gain += sum(1 for c in revealed if not c.is_mine) * REVEALED_NEIGHBOR_WEIGHT
        if revealed:
            gain += FRONTIER_BONUS
        return gain

    @staticmethod
    def rank_moves(moves: List[HintSuggestion]) -> List[HintSuggestion]:
        """
        Order moves best first.

        Confidence descending, then expected information descending (both
        within RANKING_TOLERANCE), then reveal before flag, then top-left
        first.
        """
        return sorted(moves, key=functools.cmp_to_key(_compare_moves))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _candidates(
        self, board: BoardView, probabilities: Mapping[Coord, float]
    ) -> Iterator[Tuple[Coord, float]]:
        """Yield (cell, probability) for evaluated unknown cells, row-major."""
        if not probabilities:
            return
        for y in range(board.height):
            for x in range(board.width):
                probability = probabilities.get((x, y))
                if probability is None:
                    continue
                if board.cell_at(x, y).is_unknown:
                    yield (x, y), probability

    def _certain_move(
        self, board: BoardView, cell: Coord, probability: float
    ) -> Optional[HintSuggestion]:
        x, y = cell
        if probability <= self.epsilon:
            return HintSuggestion(
                cell=cell,
                action=REVEAL,
                confidence=1.0,
                reasoning=(
                    f"This cell has a {probability * 100:.2f}% chance of "
                    "containing a mine, making it safe to reveal."
                ),
                expected_information=self.calculate_information_gain(board, x, y),
            )
        if probability >= 1.0 - self.epsilon:
            # Flagging uncovers nothing new about neighboring cells.
            return HintSuggestion(
                cell=cell,
                action=FLAG,
                confidence=1.0,
                reasoning=(
                    f"This cell has a {probability * 100:.2f}% chance of "
                    "containing a mine, making it certain to be a mine."
                ),
                expected_information=0.0,
            )
        return None


def generate_hint(
    board: BoardView,
    probabilities: Mapping[Coord, float],
    *,
    epsilon: float = EPSILON,
) -> Optional[HintSuggestion]:
    """Best move for a board using a one-off :class:`HintEngine`."""
    hint = HintEngine(epsilon=epsilon).generate_hint(board, probabilities)
    if hint is None:
        logger.debug("No hint available: no evaluated unknown cells.")
    return hint
