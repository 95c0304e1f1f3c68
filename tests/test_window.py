import pytest

from qos_sweep.analysis.window import MeasurementWindow, compute_stats


def test_mean_and_positional_median_even():
    stats = compute_stats([0, 1, 2, 3], [0, 5, 5, 5])

    assert stats.delay_mean == pytest.approx(3.75)
    assert stats.delay_median == 5


def test_median_odd_uses_upper_middle_without_sorting():
    # ceil(3 / 2) == 2, and the gaps are not sorted first
    stats = compute_stats([0, 1, 2], [0, 40, 3])

    assert stats.delay_median == 3


def test_loss_rate_may_be_negative():
    stats = compute_stats(list(range(10, 20)), [0] * 10)

    assert stats.received == 10
    assert stats.expected == 9
    assert stats.loss_rate == pytest.approx(1 - 10 / 9)
    assert stats.loss_rate < 0


def test_loss_rate_with_missing_messages():
    stats = compute_stats([0, 10, 20], [0, 1, 1])

    assert stats.expected == 20
    assert stats.loss_rate == pytest.approx(0.85)


def test_out_of_order_counts_arrival_order_pairs():
    stats = compute_stats([5, 6, 4, 7], [0, 1, 1, 1])

    assert stats.out_of_order_rate == pytest.approx(0.25)


def test_message_rate_uses_window_length():
    assert compute_stats(list(range(50)), [0] * 50).message_rate == pytest.approx(5.0)
    assert compute_stats(list(range(50)), [0] * 50, window_seconds=5).message_rate == pytest.approx(10.0)


def test_empty_window_is_undefined():
    assert compute_stats([], [0]) is None


def test_single_message_window_is_guarded():
    stats = compute_stats([42], [0])

    assert stats.expected == 0
    assert stats.loss_rate is None
    assert stats.delay_median == 0
    assert stats.out_of_order_rate == 0


def test_window_gaps_track_sequence_length():
    window = MeasurementWindow()
    window.mark(0)

    window.record(0, 100)
    window.record(1, 105)
    window.record(2, 112)

    assert window.sequence == [0, 1, 2]
    assert window.gaps == [0, 5, 7]
    assert len(window) == 3


def test_mark_moves_gap_reference():
    window = MeasurementWindow()
    window.record(0, 100)
    window.mark(150)
    window.record(1, 160)

    assert window.gaps == [0, 10]


def test_reset_reseeds_sentinel_and_keeps_reference():
    window = MeasurementWindow()
    window.record(0, 100)
    window.record(1, 110)

    window.reset()
    assert window.sequence == []
    assert window.gaps == [0]

    window.record(2, 200)
    window.record(3, 230)
    assert window.gaps == [0, 30]
