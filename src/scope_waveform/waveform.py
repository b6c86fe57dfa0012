from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from .grid import Grid

# Abstand (in Indexeinheiten), ab dem ein Index als Gitterpunkt gilt.
SNAP_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class Peak:
    x_start: float
    x_peak: float
    x_end: float
    peak_value: float


class SampledWave(Protocol):
    """Lesende Schnittstelle, die Accumulate und der Accumulator benutzen."""

    grid: Grid

    def point_value(self, x: float) -> float: ...


def _as_samples(grid: Grid, values: Sequence[float] | None, what: str) -> list[float]:
    if values is None:
        return [0.0] * grid.size
    if len(values) != grid.size:
        raise ValueError(
            f"Größenfehler: {len(values)} {what} für ein Grid mit size={grid.size}"
        )
    return [float(v) for v in values]


def _interpolate(values: list[float], i: float) -> float:
    """Linear inter-/extrapolierter Wert am fraktionalen Index i.

    Außerhalb von [0, size-1] wird die Steigung des Randsegments
    fortgesetzt, es wird nicht geklemmt.
    """
    if math.isnan(i):
        return math.nan

    size = len(values)

    if math.isfinite(i):
        nearest = round(i)
        if 0 <= nearest < size and abs(i - nearest) <= SNAP_TOLERANCE:
            return values[nearest]

    if i <= 0:
        ratio = 1 - i
        left = 0
    elif i >= size - 1:
        ratio = (size - 1) - i
        left = size - 2
    else:
        ratio = math.ceil(i) - i
        left = math.floor(i)
        if ratio == 0:
            return values[left]
    return ratio * values[left] + (1 - ratio) * values[left + 1]


def _check_alignment(own: Grid, other: Grid) -> None:
    gap = (other.front - own.front) / own.step
    if abs(gap) > 1:
        raise ValueError(
            "Die Grids der beiden Waveforms liegen zu weit auseinander. "
            f"Differenz: {other.front - own.front}"
        )


def _checked_index(index: int, size: int) -> int:
    if not 0 <= index < size:
        raise IndexError(f"Index {index} außerhalb von [0, {size})")
    return index


_W = TypeVar("_W", bound="_SampleChannel")


class _SampleChannel:
    """Gemeinsamer Teil beider Waveform-Typen: Zugriff auf grid + samples,
    Interpolation, Extrema, Integral und Peak-Suche.
    """

    __slots__ = ()

    grid: Grid
    samples: list[float]

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[float]:
        return iter(self.samples)

    # Ungeprüft: 0 <= index < size liegt in der Verantwortung des Aufrufers.
    def __getitem__(self, index: int) -> float:
        return self.samples[index]

    def __setitem__(self, index: int, value: float) -> None:
        self.samples[index] = value

    def at(self, index: int) -> float:
        return self.samples[_checked_index(index, len(self.samples))]

    def set_at(self, index: int, value: float) -> None:
        self.samples[_checked_index(index, len(self.samples))] = value

    def coordinates(self) -> list[float]:
        return self.grid.to_list()

    def add_in_place(self, value: float) -> None:
        self.samples[:] = [y + value for y in self.samples]

    def scale_in_place(self, factor: float) -> None:
        self.samples[:] = [y * factor for y in self.samples]

    def __iadd__(self: _W, value: float) -> _W:
        self.add_in_place(value)
        return self

    def __imul__(self: _W, factor: float) -> _W:
        self.scale_in_place(factor)
        return self

    def point_value(self, x: float) -> float:
        return _interpolate(self.samples, self.grid.index_of(x))

    def extremum(self, x_start: float, x_end: float, want_max: bool = True) -> float:
        """Maximum (oder Minimum) auf dem geschlossenen Intervall [x_start, x_end]."""
        if x_start > x_end:
            raise ValueError(f"x_start ({x_start}) muss kleiner gleich x_end ({x_end}) sein")

        i_lo, i_hi = sorted((self.grid.index_of(x_start), self.grid.index_of(x_end)))
        candidates = [_interpolate(self.samples, i_lo), _interpolate(self.samples, i_hi)]

        first = max(math.ceil(i_lo), 0)
        stop = min(math.ceil(i_hi), len(self.samples))
        candidates.extend(self.samples[first:stop])

        return max(candidates) if want_max else min(candidates)

    def maximum(self, x_start: float, x_end: float) -> float:
        return self.extremum(x_start, x_end, want_max=True)

    def minimum(self, x_start: float, x_end: float) -> float:
        return self.extremum(x_start, x_end, want_max=False)

    def integral(self, x_start: float, x_end: float) -> float:
        """Trapezregel von x_start bis x_end. Umgekehrtes Intervall ergibt 0."""
        if x_end < x_start:
            return 0.0

        i_lo, i_hi = sorted((self.grid.index_of(x_start), self.grid.index_of(x_end)))

        # Stützstellen: Intervallränder plus alle ganzzahligen Indizes dazwischen.
        # Außerhalb von [0, size-1] ist die Kurve linear, dort reichen die Ränder.
        first = max(math.floor(i_lo) + 1, 0)
        last = min(math.ceil(i_hi) - 1, len(self.samples) - 1)
        points = [i_lo, *range(first, last + 1), i_hi]

        values = [_interpolate(self.samples, p) for p in points]
        total = 0.0
        for k in range(len(points) - 1):
            total += (points[k + 1] - points[k]) * (values[k] + values[k + 1]) / 2
        return total * abs(self.grid.step)

    def search_peaks(self, threshold: float, x_skip: float = 0.0) -> list[Peak]:
        """Sucht zusammenhängende Bereiche oberhalb von threshold.

        Unterschreitungen innerhalb von x_skip (Abstand in x) nach dem Beginn
        eines Bereichs beenden ihn nicht. Ein Bereich, der am letzten Sample
        noch offen ist, wird nicht gemeldet.
        """
        x_skip = max(x_skip, 0.0)
        grid = self.grid
        ys = self.samples

        peaks: list[Peak] = []
        in_run = False
        x_start = grid.front
        # fraktionaler Index von x_start, Totzeit wird im Indexraum gemessen
        i_start = -math.inf
        i_peak = 0
        i_last_above = 0
        peak_value = 0.0

        for index, y in enumerate(ys):
            if y > threshold:
                if not in_run:
                    if index == 0:
                        i_start = 0.0
                        x_start = grid.front
                    else:
                        i_start = index - (y - threshold) / (y - ys[index - 1])
                        x_start = grid.coordinate_of(i_start)
                    in_run = True
                    i_peak = index
                    peak_value = y
                elif y > peak_value:
                    i_peak = index
                    peak_value = y
                i_last_above = index
                continue

            if (index - i_start) * abs(grid.step) < x_skip:
                continue

            if in_run:
                y_above = ys[i_last_above]
                y_below = ys[i_last_above + 1]
                i_end = i_last_above + 1 - (threshold - y_below) / (y_above - y_below)
                peaks.append(
                    Peak(x_start, grid.coordinate_of(i_peak), grid.coordinate_of(i_end), peak_value)
                )
                in_run = False

        return peaks


class Waveform(_SampleChannel):
    """Feste Anzahl Samples auf einem geliehenen, gleichförmigen Grid."""

    __slots__ = ("grid", "samples")

    def __init__(self, grid: Grid, samples: Sequence[float] | None = None) -> None:
        if grid.size < 2:
            raise ValueError(f"Waveform braucht ein Grid mit size >= 2 (size={grid.size})")
        self.grid = grid
        self.samples = _as_samples(grid, samples, "Samples")

    def __repr__(self) -> str:
        return f"Waveform(grid={self.grid!r}, samples={self.samples!r})"

    def copy(self) -> Waveform:
        return Waveform(self.grid, self.samples)

    def accumulate(self, other: SampledWave, factor: float = 1.0) -> None:
        """Addiert factor * other, ausgewertet an den eigenen Gitterpunkten."""
        _check_alignment(self.grid, other.grid)
        # erst alles auswerten, other darf self sein
        added = [factor * other.point_value(x) for x in self.grid]
        self.samples[:] = [y + a for y, a in zip(self.samples, added, strict=True)]


class WaveformWithUncertainty(_SampleChannel):
    """Waveform mit paralleler Unsicherheit pro Sample.

    Die Fehler werden nicht auf Nichtnegativität geprüft.
    """

    __slots__ = ("grid", "samples", "errors")

    def __init__(
        self,
        grid: Grid,
        samples: Sequence[float] | None = None,
        errors: Sequence[float] | None = None,
    ) -> None:
        if grid.size < 2:
            raise ValueError(f"Waveform braucht ein Grid mit size >= 2 (size={grid.size})")
        self.grid = grid
        self.samples = _as_samples(grid, samples, "Samples")
        self.errors = _as_samples(grid, errors, "Fehlerwerte")

    def __repr__(self) -> str:
        return (
            f"WaveformWithUncertainty(grid={self.grid!r}, "
            f"samples={self.samples!r}, errors={self.errors!r})"
        )

    def error(self, index: int) -> float:
        return self.errors[index]

    def error_at(self, index: int) -> float:
        return self.errors[_checked_index(index, len(self.errors))]

    def set_error_at(self, index: int, value: float) -> None:
        self.errors[_checked_index(index, len(self.errors))] = value

    def point_error(self, x: float) -> float:
        return _interpolate(self.errors, self.grid.index_of(x))

    def copy(self) -> WaveformWithUncertainty:
        return WaveformWithUncertainty(self.grid, self.samples, self.errors)

    def without_errors(self) -> Waveform:
        return Waveform(self.grid, self.samples)

    def scale_in_place(self, factor: float) -> None:
        super().scale_in_place(factor)
        self.errors[:] = [e * factor for e in self.errors]

    def accumulate(self, other: SampledWave, factor: float = 1.0) -> None:
        """Wie Waveform.accumulate, Fehler werden quadratisch addiert.

        Ein other ohne Fehlerkanal trägt nichts zur Unsicherheit bei.
        """
        _check_alignment(self.grid, other.grid)

        xs = self.grid.to_list()
        added = [factor * other.point_value(x) for x in xs]
        if isinstance(other, WaveformWithUncertainty):
            added_err = [factor * other.point_error(x) for x in xs]
        else:
            added_err = [0.0] * len(xs)

        self.samples[:] = [y + a for y, a in zip(self.samples, added, strict=True)]
        self.errors[:] = [
            math.hypot(e, a) for e, a in zip(self.errors, added_err, strict=True)
        ]
