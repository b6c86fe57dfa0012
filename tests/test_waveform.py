from __future__ import annotations

import math

import pytest

from scope_waveform.grid import Grid
from scope_waveform.waveform import Peak, Waveform


@pytest.fixture
def triangle() -> Waveform:
    return Waveform(Grid(front=0.0, step=1.0, size=5), [0, 1, 4, 1, 0])


def test_default_samples_are_zero() -> None:
    wf = Waveform(Grid.of_size(4))
    assert wf.samples == [0.0, 0.0, 0.0, 0.0]


def test_size_mismatch() -> None:
    with pytest.raises(ValueError):
        Waveform(Grid.of_size(4), [1.0, 2.0, 3.0])


def test_grid_needs_two_points() -> None:
    with pytest.raises(ValueError):
        Waveform(Grid.of_size(1), [1.0])


def test_checked_accessors(triangle: Waveform) -> None:
    assert triangle.at(2) == 4.0
    triangle.set_at(2, 5.0)
    assert triangle[2] == 5.0
    with pytest.raises(IndexError):
        triangle.at(5)
    with pytest.raises(IndexError):
        triangle.at(-1)
    with pytest.raises(IndexError):
        triangle.set_at(5, 0.0)


def test_point_value_exact_at_grid_points() -> None:
    grid = Grid(front=0.1, step=0.1, size=10)
    samples = [0.3 * i * i - 1.7 * i + 0.11 for i in range(10)]
    wf = Waveform(grid, samples)
    for i in range(grid.size):
        assert wf.point_value(grid.coordinate_of(i)) == wf.samples[i]


def test_point_value_is_affine_between_points(triangle: Waveform) -> None:
    ys = triangle.samples
    for i in range(4):
        for t in (0.0, 0.25, 0.5, 0.75, 1.0):
            expected = (1 - t) * ys[i] + t * ys[i + 1]
            assert triangle.point_value(i + t) == pytest.approx(expected)


def test_point_value_extrapolates_boundary_slope() -> None:
    wf = Waveform(Grid.of_size(4), [1.0, 3.0, 2.0, 0.0])
    assert wf.point_value(-1.0) == pytest.approx(-1.0)
    assert wf.point_value(-0.5) == pytest.approx(0.0)
    assert wf.point_value(5.0) == pytest.approx(-4.0)


def test_scalar_arithmetic(triangle: Waveform) -> None:
    triangle.add_in_place(1.0)
    assert triangle.samples == [1.0, 2.0, 5.0, 2.0, 1.0]
    triangle.scale_in_place(2.0)
    assert triangle.samples == [2.0, 4.0, 10.0, 4.0, 2.0]
    triangle += 1.0
    triangle *= 0.5
    assert triangle.samples == [1.5, 2.5, 5.5, 2.5, 1.5]


def test_copy_is_independent(triangle: Waveform) -> None:
    other = triangle.copy()
    other.add_in_place(1.0)
    assert triangle.samples == [0.0, 1.0, 4.0, 1.0, 0.0]
    assert other.grid is triangle.grid


def test_accumulate_same_grid(triangle: Waveform) -> None:
    other = Waveform(triangle.grid, [1, 1, 1, 1, 1])
    triangle.accumulate(other, factor=2.0)
    assert triangle.samples == [2.0, 3.0, 6.0, 3.0, 2.0]


def test_accumulate_with_itself(triangle: Waveform) -> None:
    triangle.accumulate(triangle)
    assert triangle.samples == [0.0, 2.0, 8.0, 2.0, 0.0]


def test_accumulate_shifted_grid_interpolates() -> None:
    own = Waveform(Grid(front=0.0, step=1.0, size=3))
    other = Waveform(Grid(front=0.5, step=1.0, size=3), [0.0, 1.0, 2.0])
    own.accumulate(other)
    assert own.samples == pytest.approx([-0.5, 0.5, 1.5])


def test_accumulate_offset_of_one_step_is_allowed() -> None:
    own = Waveform(Grid(front=0.0, step=1.0, size=5))
    other = Waveform(Grid(front=1.0, step=1.0, size=5), [2.0] * 5)
    own.accumulate(other)
    assert own.samples == pytest.approx([2.0] * 5)


def test_accumulate_misaligned_fails_without_mutation(triangle: Waveform) -> None:
    other = Waveform(Grid(front=1.5, step=1.0, size=5), [1.0] * 5)
    with pytest.raises(ValueError):
        triangle.accumulate(other)
    assert triangle.samples == [0.0, 1.0, 4.0, 1.0, 0.0]


def test_extremum(triangle: Waveform) -> None:
    assert triangle.maximum(0.5, 3.5) == 4.0
    assert triangle.extremum(0.5, 3.5, want_max=True) == 4.0
    assert triangle.minimum(0.5, 3.5) == pytest.approx(0.5)
    # beide Grenzen in derselben Zelle
    assert triangle.maximum(1.2, 1.8) == pytest.approx(3.4)
    assert triangle.minimum(1.2, 1.8) == pytest.approx(1.6)
    assert triangle.maximum(2.0, 2.0) == 4.0


def test_extremum_outside_grid_uses_extrapolation(triangle: Waveform) -> None:
    assert triangle.minimum(-1.0, 1.0) == pytest.approx(-1.0)
    assert triangle.maximum(-1.0, 1.0) == pytest.approx(1.0)


def test_extremum_rejects_inverted_interval(triangle: Waveform) -> None:
    with pytest.raises(ValueError):
        triangle.extremum(3.0, 1.0)
    with pytest.raises(ValueError):
        triangle.minimum(3.0, 1.0)


def test_integral_full_range(triangle: Waveform) -> None:
    assert triangle.integral(0.0, 4.0) == pytest.approx(6.0)


def test_integral_scales_with_step() -> None:
    wf = Waveform(Grid(front=0.0, step=0.5, size=5), [0, 1, 4, 1, 0])
    assert wf.integral(0.0, 2.0) == pytest.approx(3.0)


def test_integral_inside_one_cell() -> None:
    wf = Waveform(Grid.of_size(2), [0.0, 1.0])
    assert wf.integral(0.2, 0.7) == pytest.approx(0.225)


def test_integral_is_additive(triangle: Waveform) -> None:
    a, b, c = 0.3, 2.6, 3.9
    assert triangle.integral(a, c) == pytest.approx(
        triangle.integral(a, b) + triangle.integral(b, c)
    )
    # auch im extrapolierten Bereich
    a, b, c = -1.5, 0.25, 5.5
    assert triangle.integral(a, c) == pytest.approx(
        triangle.integral(a, b) + triangle.integral(b, c)
    )


def test_integral_empty_and_inverted(triangle: Waveform) -> None:
    assert triangle.integral(1.7, 1.7) == 0.0
    assert triangle.integral(3.0, 1.0) == 0.0


def test_integral_of_constant_beyond_grid() -> None:
    wf = Waveform(Grid.of_size(3), [1.0, 1.0, 1.0])
    assert wf.integral(-1.0, 3.0) == pytest.approx(4.0)


def test_integral_negative_step() -> None:
    wf = Waveform(Grid(front=4.0, step=-1.0, size=5), [0, 1, 4, 1, 0])
    assert wf.integral(0.0, 4.0) == pytest.approx(6.0)


def test_peak_on_negative_step_grid() -> None:
    wf = Waveform(Grid(front=4.0, step=-1.0, size=5), [0, 1, 4, 1, 0])
    peaks = wf.search_peaks(threshold=2.0, x_skip=0.0)
    assert len(peaks) == 1
    peak = peaks[0]
    assert peak.peak_value == 4.0
    assert peak.x_peak == 2.0
    assert peak.x_start == pytest.approx(8.0 / 3.0)
    assert peak.x_end == pytest.approx(4.0 / 3.0)


def test_skip_on_negative_step_grid_merges_peaks() -> None:
    wf = Waveform(Grid(front=0.0, step=-1.0, size=5), [0, 3, 0, 3, 0])
    assert len(wf.search_peaks(threshold=1.0)) == 2
    merged = wf.search_peaks(threshold=1.0, x_skip=2.0)
    assert len(merged) == 1
    assert merged[0].x_start == pytest.approx(-1.0 / 3.0)
    assert merged[0].x_end == pytest.approx(-11.0 / 3.0)


def test_single_peak(triangle: Waveform) -> None:
    peaks = triangle.search_peaks(threshold=2.0, x_skip=0.0)
    assert len(peaks) == 1
    peak = peaks[0]
    assert peak.peak_value == 4.0
    assert peak.x_peak == 2.0
    assert 1.0 < peak.x_start < 2.0
    assert 2.0 < peak.x_end < 3.0
    assert peak.x_start == pytest.approx(4.0 / 3.0)
    assert peak.x_end == pytest.approx(8.0 / 3.0)


def test_peaks_are_rescanned_each_call(triangle: Waveform) -> None:
    assert triangle.search_peaks(2.0) == triangle.search_peaks(2.0)


def test_two_peaks_and_skip_merges_them() -> None:
    wf = Waveform(Grid.of_size(5), [0, 3, 0, 3, 0])

    peaks = wf.search_peaks(threshold=1.0)
    assert [p.x_peak for p in peaks] == [1.0, 3.0]
    assert peaks[0].x_start == pytest.approx(1.0 / 3.0)
    assert peaks[0].x_end == pytest.approx(5.0 / 3.0)
    assert peaks[1].x_start == pytest.approx(7.0 / 3.0)
    assert peaks[1].x_end == pytest.approx(11.0 / 3.0)

    merged = wf.search_peaks(threshold=1.0, x_skip=2.0)
    assert len(merged) == 1
    assert isinstance(merged[0], Peak)
    assert merged[0].x_start == pytest.approx(1.0 / 3.0)
    assert merged[0].x_peak == 1.0
    assert merged[0].x_end == pytest.approx(11.0 / 3.0)
    assert merged[0].peak_value == 3.0


def test_negative_skip_is_clamped() -> None:
    wf = Waveform(Grid.of_size(5), [0, 3, 0, 3, 0])
    assert wf.search_peaks(1.0, x_skip=-5.0) == wf.search_peaks(1.0, x_skip=0.0)


def test_peak_touching_first_sample_starts_at_front() -> None:
    wf = Waveform(Grid(front=10.0, step=0.5, size=4), [5.0, 2.0, 0.0, 0.0])
    peaks = wf.search_peaks(threshold=1.0)
    assert len(peaks) == 1
    assert peaks[0].x_start == 10.0
    assert peaks[0].x_peak == 10.0
    assert peaks[0].x_end == pytest.approx(10.75)


def test_peak_still_open_at_end_is_not_reported() -> None:
    wf = Waveform(Grid.of_size(4), [0.0, 0.0, 2.0, 3.0])
    assert wf.search_peaks(threshold=1.0) == []


def test_peak_below_zero_threshold() -> None:
    wf = Waveform(Grid.of_size(5), [-5.0, -2.0, -1.0, -3.0, -5.0])
    peaks = wf.search_peaks(threshold=-4.0)
    assert len(peaks) == 1
    assert peaks[0].peak_value == -1.0
    assert peaks[0].x_peak == 2.0


def test_point_value_non_finite_coordinates(triangle: Waveform) -> None:
    assert math.isnan(triangle.point_value(math.nan))
    # inf - inf im Randsegment, kein Absturz beim Runden
    assert math.isnan(triangle.point_value(math.inf))
    assert math.isnan(triangle.point_value(-math.inf))


def test_in_place_operations_keep_sample_list(triangle: Waveform) -> None:
    samples = triangle.samples
    triangle.add_in_place(1.0)
    triangle.scale_in_place(2.0)
    triangle += 1.0
    triangle.accumulate(triangle.copy())
    assert triangle.samples is samples
    assert samples == [6.0, 10.0, 22.0, 10.0, 6.0]
