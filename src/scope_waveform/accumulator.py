from __future__ import annotations

import math
from collections.abc import Callable

from .grid import Grid
from .waveform import SampledWave, WaveformWithUncertainty

Predicate = Callable[[int, float], bool]


def _always(index: int, value: float) -> bool:
    return True


class WaveformAccumulator:
    """Laufende Summe und Quadratsumme über viele Waveforms auf einem Grid.

    count zählt Push-Aufrufe, nicht die pro Index aufgenommenen Werte.
    Lehnt das Prädikat Werte ab, sind Mittelwert und Streuung dieser
    Indizes entsprechend verzerrt.
    """

    def __init__(self, grid: Grid) -> None:
        self.grid = grid
        self.count = 0
        self.sum = [0.0] * grid.size
        self.sum_of_squares = [0.0] * grid.size

    def push(self, waveform: SampledWave, predicate: Predicate | None = None) -> None:
        keep = predicate or _always

        updates: list[tuple[int, float]] = []
        for index, x in enumerate(self.grid):
            value = waveform.point_value(x)
            if keep(index, value):
                updates.append((index, value))

        for index, value in updates:
            self.sum[index] += value
            self.sum_of_squares[index] += value**2
        self.count += 1

    def write(self) -> WaveformWithUncertainty:
        """Mittelwert ± Stichproben-Standardabweichung (n-1) pro Index."""
        if self.count <= 1:
            raise ValueError(
                f"Mindestens zwei Waveforms nötig für eine Standardabweichung (count={self.count})"
            )

        n = float(self.count)
        means: list[float] = []
        errors: list[float] = []
        for s, s2 in zip(self.sum, self.sum_of_squares, strict=True):
            mu = s / n
            # Rundungsfehler können die Varianz knapp unter 0 drücken
            var = max((s2 - n * mu**2) / (n - 1), 0.0)
            means.append(mu)
            errors.append(math.sqrt(var))

        return WaveformWithUncertainty(self.grid, means, errors)
