from __future__ import annotations

import matplotlib.pyplot as plt

from .stats import gaussian_pdf, summarize
from .waveform import Peak, WaveformWithUncertainty


class Viewer:
    VIEW_BOTH = 1
    VIEW_TIME = 2
    VIEW_HIST = 3

    def __init__(
        self,
        result: WaveformWithUncertainty,
        residual: list[float],
        peaks: list[Peak],
        bins: int,
        count: int,
        debug_keys: bool = False,
    ) -> None:
        self.result = result
        self.residual = residual
        self.peaks = peaks
        self.bins = bins
        self.count = count
        self.debug_keys = debug_keys
        self.view = self.VIEW_BOTH

        self.noise = summarize(residual)

        self.fig = plt.figure()
        self.fig.canvas.mpl_connect("key_press_event", self.on_key)

        # Zwei Achsen – werden je nach Ansicht nur umpositioniert / versteckt
        self.ax_time = self.fig.add_axes([0.08, 0.55, 0.90, 0.37])
        self.ax_hist = self.fig.add_axes([0.08, 0.10, 0.90, 0.37])

        self._draw_time()
        self._draw_hist()

        self.set_view(self.VIEW_BOTH)

    def on_key(self, event) -> None:
        k = (event.key or "").lower()
        if self.debug_keys:
            print("key:", repr(event.key))

        # Bei manchen Tastaturen kommen numpad-Ziffern als "kp1" usw.
        if k in ("n", "right"):
            self.set_view(1 + (self.view % 3))
        elif k in ("p", "left"):
            self.set_view(3 if self.view == 1 else (self.view - 1))
        elif k in ("1", "kp1"):
            self.set_view(self.VIEW_BOTH)
        elif k in ("2", "kp2"):
            self.set_view(self.VIEW_TIME)
        elif k in ("3", "kp3"):
            self.set_view(self.VIEW_HIST)
        elif k in ("q", "escape"):
            plt.close(self.fig)

    def set_view(self, v: int) -> None:
        self.view = v

        if v == self.VIEW_BOTH:
            self.ax_time.set_visible(True)
            self.ax_hist.set_visible(True)
            self.ax_time.set_position([0.08, 0.55, 0.90, 0.37])
            self.ax_hist.set_position([0.08, 0.10, 0.90, 0.37])
            title = "Ansicht 1/3: Mittelwert ± σ + Rauschhistogramm  (1/2/3, n/p, q)"
        elif v == self.VIEW_TIME:
            self.ax_time.set_visible(True)
            self.ax_hist.set_visible(False)
            self.ax_time.set_position([0.08, 0.10, 0.90, 0.82])
            title = "Ansicht 2/3: Mittelwert ± σ  (1/2/3, n/p, q)"
        else:
            self.ax_hist.set_visible(True)
            self.ax_time.set_visible(False)
            self.ax_hist.set_position([0.08, 0.10, 0.90, 0.82])
            title = "Ansicht 3/3: Rauschhistogramm  (1/2/3, n/p, q)"

        self.fig.suptitle(title)

        # TkAgg ist manchmal erst mit draw() wirklich glücklich:
        self.fig.canvas.draw()
        self.fig.canvas.flush_events()

    def _draw_time(self) -> None:
        ax = self.ax_time
        ax.clear()

        xs = self.result.coordinates()
        mu = self.result.samples
        lower = [m - e for m, e in zip(mu, self.result.errors, strict=True)]
        upper = [m + e for m, e in zip(mu, self.result.errors, strict=True)]

        ax.fill_between(xs, lower, upper, alpha=0.3, linewidth=0)
        ax.plot(xs, mu)
        for peak in self.peaks:
            ax.axvspan(peak.x_start, peak.x_end, alpha=0.15, color="tab:red")
            ax.plot([peak.x_peak], [peak.peak_value], "v", color="tab:red")

        ax.set_title(f"Mittelwert über {self.count} Messungen")
        ax.set_xlabel("Zeit")
        ax.set_ylabel("Spannung [V]")
        ax.text(
            0.98,
            0.95,
            f"Peaks = {len(self.peaks)}\nN = {self.count}",
            transform=ax.transAxes,
            ha="right",
            va="top",
        )

    def _draw_hist(self) -> None:
        ax = self.ax_hist
        ax.clear()
        counts, bin_edges, _ = ax.hist(self.residual, bins=self.bins)
        ax.set_xlabel("Abweichung vom Mittelwert [V]")
        ax.set_ylabel("Anzahl pro Bin")

        mu = self.noise.mu
        sigma = self.noise.sigma
        if sigma == 0.0:
            ax.set_title("Rauschen (σ=0: Messung identisch mit Mittelwert)")
            return

        bin_width = bin_edges[1] - bin_edges[0]
        centers = [(bin_edges[i] + bin_edges[i + 1]) / 2 for i in range(len(bin_edges) - 1)]
        N = len(self.residual)
        gauss_y = [N * bin_width * gaussian_pdf(x, mu, sigma) for x in centers]
        ax.plot(centers, gauss_y)
        ax.set_title(f"Rauschen + Gauss-Fit (µ = {mu:.3g} V, σ = {sigma:.3g} V)")
