from __future__ import annotations

import argparse
import sys
from pathlib import Path

from serial.tools import list_ports

from .accumulator import Predicate, WaveformAccumulator
from .gds_reader import read_captures
from .stats import residuals, summarize
from .types import Capture
from .viewer import Viewer


def _available_ports() -> list[str]:
    return [p.device for p in list_ports.comports()]


def _print_ports() -> None:
    ports = _available_ports()
    if not ports:
        print("Keine seriellen Ports gefunden.")
        return
    for p in ports:
        print(p)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="oszi-wave",
        description=(
            "Liest mehrere Memory-Waveforms aus dem GW Instek GDS-1000B, mittelt sie "
            "(Mittelwert ± σ pro Sample) und sucht Peaks. Optional: Export als PNG."
        ),
    )

    p.add_argument(
        "--list-ports",
        action="store_true",
        help="Verfügbare COM-Ports auflisten und beenden.",
    )

    p.add_argument("--port", help="COM-Port, z.B. COM5. (Pflicht, außer bei --list-ports)")
    p.add_argument("--baud", type=int, default=115200)
    p.add_argument("--channel", type=int, default=1)
    p.add_argument("--timeout", type=float, default=5.0)
    p.add_argument("--bins", type=int, default=60)
    p.add_argument(
        "-n",
        "--count",
        type=int,
        default=10,
        help="Anzahl Messungen, die gemittelt werden (mindestens 2).",
    )
    p.add_argument(
        "--clip",
        type=int,
        metavar="RAW",
        help="Samples mit |raw_int16| >= RAW gelten als übersteuert und werden nicht gemittelt.",
    )
    p.add_argument(
        "--threshold",
        type=float,
        help="Schwelle [V] für die Peak-Suche auf dem Mittelwert.",
    )
    p.add_argument(
        "--skip",
        type=float,
        default=0.0,
        help="Totzeit nach Peak-Beginn, in der Unterschreitungen ignoriert werden.",
    )

    p.add_argument(
        "--png",
        metavar="DATEI",
        help="Optional: Plot als PNG speichern (z.B. out.png).",
    )
    p.add_argument(
        "--no-show",
        action="store_true",
        help="Kein Plot-Fenster öffnen (praktisch für automatisierte Runs).",
    )
    p.add_argument("--debug-keys", action="store_true", help="Gibt empfangene Key-Events aus")
    p.add_argument("-v", "--verbose", action="store_true", help="Mehr Ausgaben (Debug).")

    args = p.parse_args(argv)
    if args.count < 2:
        p.error("--count muss mindestens 2 sein")
    return args


def clip_predicate(capture: Capture, clip: int | None) -> Predicate | None:
    """Prädikat für WaveformAccumulator.push, das übersteuerte Samples verwirft."""
    if clip is None:
        return None
    raw = capture.raw_int16

    def keep(index: int, value: float) -> bool:
        return index < len(raw) and abs(raw[index]) < clip

    return keep


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_ports:
        _print_ports()
        return

    if not args.port:
        print("ERROR: --port ist erforderlich (außer bei --list-ports).", file=sys.stderr)
        ports = _available_ports()
        if ports:
            print("Verfügbare Ports:", file=sys.stderr)
            for p in ports:
                print(f"  {p}", file=sys.stderr)
        print("Tipp: oszi-wave --list-ports", file=sys.stderr)
        sys.exit(2)

    if args.verbose:
        ports = _available_ports()
        if ports and args.port not in ports:
            print(
                f"WARNING: Port {args.port!r} nicht in der aktuellen Port-Liste gefunden.",
                file=sys.stderr,
            )

    try:
        captures = read_captures(
            port=args.port,
            count=args.count,
            baud=args.baud,
            channel=args.channel,
            timeout_s=args.timeout,
        )
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("Tipp: oszi-wave --list-ports", file=sys.stderr)
        sys.exit(2)

    # Alle Messungen werden auf das Grid der ersten abgebildet
    grid = captures[0].grid()
    acc = WaveformAccumulator(grid)
    for i, capture in enumerate(captures, start=1):
        acc.push(capture.to_waveform(), clip_predicate(capture, args.clip))
        if args.verbose:
            print(f"Messung {i}/{len(captures)}: N={len(capture.volts)}", file=sys.stderr)

    result = acc.write()

    last = captures[-1].to_waveform()
    residual = residuals([last.point_value(x) for x in grid], result.samples)

    print(f"Mittelwert:    {summarize(result.samples).line()}")
    print(f"σ pro Sample:  {summarize(result.errors).line()}")
    print(f"Rauschen (letzte Messung - Mittelwert): {summarize(residual).line()}")

    peaks = []
    if args.threshold is not None:
        peaks = result.search_peaks(args.threshold, args.skip)
        print(f"Peaks über {args.threshold:g} V: {len(peaks)}")
        for peak in peaks:
            area = result.integral(peak.x_start, peak.x_end)
            print(
                f"  x={peak.x_peak:.6g}  max={peak.peak_value:.6g} V  "
                f"[{peak.x_start:.6g}, {peak.x_end:.6g}]  Fläche={area:.6g}"
            )

    viewer = Viewer(
        result,
        residual,
        peaks,
        bins=args.bins,
        count=acc.count,
        debug_keys=args.debug_keys,
    )
    # Wichtig: starke Referenz, sonst werden Key-Callbacks manchmal "komisch"
    viewer.fig._viewer_ref = viewer  # type: ignore[attr-defined]

    import matplotlib.pyplot as plt

    if args.png:
        try:
            Path(args.png).parent.mkdir(parents=True, exist_ok=True)
            plt.savefig(args.png, dpi=150)
            print(f"Wrote PNG: {args.png}")
        except Exception as e:
            print(f"ERROR: Konnte PNG nicht schreiben: {e}", file=sys.stderr)
            sys.exit(2)

    if args.no_show:
        return

    plt.show()
