from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Summary:
    n: int
    vmin: float
    vmax: float
    mu: float
    sigma: float

    def line(self, unit: str = "V") -> str:
        return (
            f"N={self.n}  min={self.vmin:.6g} {unit}  max={self.vmax:.6g} {unit}  "
            f"µ={self.mu:.6g} {unit}  σ={self.sigma:.6g} {unit}"
        )


def summarize(values: list[float]) -> Summary:
    """Kennzahlen einer Wertereihe, σ als Stichproben-Standardabweichung."""
    n = len(values)
    if n < 2:
        raise ValueError(f"Mindestens zwei Werte nötig (N={n})")
    mu = sum(values) / n
    s2 = sum((x - mu) ** 2 for x in values) / (n - 1)
    return Summary(n=n, vmin=min(values), vmax=max(values), mu=mu, sigma=math.sqrt(s2))


def residuals(values: list[float], reference: list[float]) -> list[float]:
    """Abweichung einer Einzelmessung vom Mittelwert, Index für Index."""
    return [v - r for v, r in zip(values, reference, strict=True)]


def gaussian_pdf(x: float, mu: float, sigma: float) -> float:
    return (1.0 / (sigma * math.sqrt(2.0 * math.pi))) * math.exp(
        -0.5 * ((x - mu) / sigma) ** 2
    )
