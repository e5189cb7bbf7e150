"""
Quickstart example for Minesweeper Hints.

This script shows the probability overlay and the hint for a hand-drawn
board, then follows the hint engine through generated games.
"""

from minesweeper_hints import (
    BoardSnapshot,
    HintEngine,
    ProbabilityCalculator,
    format_probability_map,
    run_many_playthroughs,
)


def main():
    print("=" * 60)
    print("Minesweeper Hints - Quickstart Example")
    print("=" * 60)

    # Example 1: Probabilities for a hand-drawn board
    print("\n1. Probabilities for a 5x4 board with 4 mines...")
    print("-" * 60)

    board = BoardSnapshot.from_strings(
        [
            "1....",
            "1....",
            "11211",
            "00000",
        ],
        mines_count=4,
    )

    calculator = ProbabilityCalculator()
    probabilities = calculator.calculate_probabilities(board)

    print(format_probability_map(board, probabilities))
    print(f"\nMethod: {probabilities.calculation_method}")
    print(f"Components: {probabilities.stats.components_count}")
    print(f"Search nodes: {probabilities.stats.nodes_explored}")

    # Example 2: Best hint
    print("\n2. Best hint:")
    print("-" * 60)

    hint = HintEngine().generate_hint(board, probabilities)
    if hint is None:
        print("No hint available.")
    else:
        print(f"{hint.action} {hint.cell} (confidence {hint.confidence:.2f})")
        print(hint.reasoning)

    # Example 3: Follow the hints through generated games
    print("\n3. Following hints on 20 Beginner games (9x9, 10 mines)...")
    print("-" * 60)

    results = run_many_playthroughs(9, 9, 10, runs=20, seed=7)
    print(f"Win rate: {results['win_rate']*100:.1f}%")
    print(f"Average moves per game: {results['avg_moves_count']:.1f}")
    print(f"Average guesses per game: {results['avg_guesses']:.1f}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
