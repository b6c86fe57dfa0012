from __future__ import annotations

from dataclasses import dataclass

from .grid import Grid
from .waveform import Waveform


@dataclass(slots=True)
class Capture:
    """Ein Memory-Dump vom Oszilloskop."""

    volts: list[float]
    raw_int16: list[int]
    sampling_period: float | None = None

    def grid(self) -> Grid:
        # ohne Sampling Period im Header: Zeitachse in Sample-Indizes
        return Grid(front=0.0, step=self.sampling_period or 1.0, size=len(self.volts))

    def to_waveform(self, grid: Grid | None = None) -> Waveform:
        return Waveform(grid or self.grid(), self.volts)
