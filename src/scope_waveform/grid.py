from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Grid:
    """Gleichförmiges Koordinatengitter: x(i) = front + i * step.

    Wird von beliebig vielen Waveforms gemeinsam (nur lesend) benutzt.
    """

    front: float
    step: float
    size: int

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"Grid braucht mindestens einen Punkt (size={self.size})")
        if self.step == 0:
            raise ValueError("Grid-Schrittweite darf nicht 0 sein")

    @classmethod
    def of_size(cls, size: int) -> Grid:
        return cls(front=0.0, step=1.0, size=size)

    @classmethod
    def from_bounds(
        cls, front: float, back_end: float, size: int, with_end: bool = True
    ) -> Grid:
        """Gitter zwischen front und back_end.

        with_end=True: back_end ist der letzte Punkt, sonst liegt er einen
        Schritt hinter dem letzten Punkt.
        """
        if size == 0:
            raise ValueError("size muss positiv sein")
        if front >= back_end:
            raise ValueError(f"front ({front}) muss kleiner als back_end ({back_end}) sein")
        if with_end and size == 1:
            raise ValueError("Mit with_end=True muss size größer als 1 sein")

        span = back_end - front
        step = span / (size - 1) if with_end else span / size
        return cls(front=front, step=step, size=size)

    @property
    def back(self) -> float:
        return self.coordinate_of(self.size - 1)

    def coordinate_of(self, index: float) -> float:
        return self.front + index * self.step

    def index_of(self, x: float) -> float:
        """Fraktionaler Index, kann < 0 oder > size-1 sein."""
        return (x - self.front) / self.step

    def in_range(self, x: float) -> bool:
        i = self.index_of(x)
        return 0 <= i <= self.size - 1

    def at(self, index: int) -> float:
        if not 0 <= index < self.size:
            raise IndexError(f"Grid-Index {index} außerhalb von [0, {self.size})")
        return self.coordinate_of(index)

    def __getitem__(self, index: int) -> float:
        return self.coordinate_of(index)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[float]:
        for i in range(self.size):
            yield self.coordinate_of(i)

    def to_list(self) -> list[float]:
        return list(self)
