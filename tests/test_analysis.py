import matplotlib.pyplot as plt
import numpy as np
import pytest

from minesweeper_hints import (
    BoardSnapshot,
    calibration_table,
    collect_calibration_samples,
    format_probability_map,
    plot_calibration,
    run_hint_playthrough,
    run_many_playthroughs,
)


def test_format_probability_map():
    board = BoardSnapshot.from_strings(["1F.."], mines_count=1)
    probabilities = {(2, 0): 0.5}

    assert format_probability_map(board, probabilities, show_coords=False) == (
        "   1   F  50   ."
    )

    lines = format_probability_map(board, probabilities).splitlines()
    assert lines[0] == "       0   1   2   3"
    assert lines[2] == " 0 |   1   F  50   ."


def test_playthrough_metrics_are_reproducible():
    first = run_hint_playthrough(8, 8, 10, seed=3)
    second = run_hint_playthrough(8, 8, 10, seed=3)

    assert first == second
    assert first["status"] in (-1, 0, 1)
    assert first["moves_count"] == first["certain_moves"] + first["guesses"]
    assert first["flags_placed"] <= 10


def test_many_playthroughs():
    summary = run_many_playthroughs(6, 6, 4, runs=3, seed=1)

    assert 0.0 <= summary["win_rate"] <= 1.0
    assert 0.0 <= summary["guess_success_rate"] <= 1.0
    assert "avg_moves_count" in summary
    assert "avg_max_component" in summary

    with pytest.raises(ValueError):
        run_many_playthroughs(6, 6, 4, runs=0)


def test_calibration_table_buckets():
    predicted = np.array([0.05, 0.15, 0.95, 0.95])
    actual = np.array([False, False, True, False])

    table = calibration_table(predicted, actual, bins=10)

    assert len(table["edges"]) == 11
    assert table["count"].tolist() == [1, 1, 0, 0, 0, 0, 0, 0, 0, 2]
    assert table["observed"][0] == 0.0
    assert table["observed"][9] == 0.5
    assert table["mean_predicted"][9] == pytest.approx(0.95)
    assert np.isnan(table["observed"][2])


def test_calibration_table_rejects_bad_input():
    with pytest.raises(ValueError):
        calibration_table(np.array([0.1, 0.2]), np.array([True]))
    with pytest.raises(ValueError):
        calibration_table(np.array([0.1]), np.array([True]), bins=0)


def test_calibration_samples_and_plot():
    predicted, actual = collect_calibration_samples(8, 8, 10, games=2, seed=0)

    assert predicted.shape == actual.shape
    assert actual.dtype == bool
    assert np.all((predicted >= 0.0) & (predicted <= 1.0))

    fig = plot_calibration(
        np.array([0.1, 0.5, 0.9]), np.array([False, True, True]), bins=5, show=False
    )
    assert len(fig.axes) == 1
    plt.close(fig)
