from __future__ import annotations

import re
import time

import serial

from .types import Capture

AD_FACTOR = 25.0


def _header_float(buf: bytes | bytearray, name: bytes) -> float | None:
    m = re.search(name + br",([^;]+);", buf)
    if not m:
        return None
    return float(m.group(1).decode("ascii", errors="replace"))


class GDSMemoryReader:
    """Parst den GDS-1000B Memory-Transfer (Header + Binärdaten) stückweise."""

    def __init__(self) -> None:
        self.buf = bytearray()
        self.waiting_for_data = False
        self.vertical_scale: float | None = None
        self.sampling_period: float | None = None
        self.length: int | None = None

    def feed(self, data: bytes) -> Capture | None:
        self.buf += data

        if not self.waiting_for_data and not self._parse_header():
            return None

        assert self.length is not None
        assert self.vertical_scale is not None

        if len(self.buf) < self.length:
            return None

        raw = self.buf[: self.length]
        self.buf = self.buf[self.length :]
        self.waiting_for_data = False

        return self._decode(bytes(raw))

    def _parse_header(self) -> bool:
        vertical_scale = _header_float(self.buf, b"Vertical Scale")
        if vertical_scale is None:
            return False

        marker = b"Waveform Data;\n#"
        i = self.buf.find(marker)
        if i == -1:
            return False

        p = i + len(marker)
        if p >= len(self.buf):
            return False

        n_digits = int(chr(self.buf[p]))
        p += 1

        if p + n_digits > len(self.buf):
            return False

        # Sampling Period steht (falls vorhanden) vor dem Datenblock
        self.sampling_period = _header_float(self.buf[:i], br"Sampling\s*Period")
        self.vertical_scale = vertical_scale
        self.length = int(self.buf[p : p + n_digits].decode("ascii"))
        p += n_digits

        self.buf = self.buf[p:]
        self.waiting_for_data = True
        return True

    def _decode(self, raw: bytes) -> Capture:
        assert self.vertical_scale is not None

        raw_int16: list[int] = []
        volts: list[float] = []
        for i in range(0, len(raw), 2):
            val = int.from_bytes(raw[i : i + 2], byteorder="big", signed=True)
            raw_int16.append(val)
            volts.append((val / AD_FACTOR) * self.vertical_scale)

        return Capture(volts=volts, raw_int16=raw_int16, sampling_period=self.sampling_period)


def read_captures(
    port: str,
    count: int = 1,
    baud: int = 115200,
    channel: int = 1,
    timeout_s: float = 5.0,
) -> list[Capture]:
    """Liest count Waveform-Dumps nacheinander aus dem Scope-Memory."""

    reader = GDSMemoryReader()
    captures: list[Capture] = []

    with serial.Serial(port, baudrate=baud, timeout=0.1) as ser:

        def send(cmd: str) -> None:
            ser.write((cmd + "\n").encode("ascii"))
            ser.flush()

        send(":HEADer ON")

        for _ in range(count):
            send(f":ACQ{channel}:MEM?")

            t0 = time.time()
            while True:
                chunk = ser.read(ser.in_waiting or 1)
                if chunk:
                    capture = reader.feed(chunk)
                    if capture is not None:
                        captures.append(capture)
                        break
                if time.time() - t0 > timeout_s:
                    raise TimeoutError(
                        "Timeout: keine vollständigen Daten vom Oszilloskop erhalten "
                        f"(Messung {len(captures) + 1}/{count})."
                    )

    return captures


def read_waveform_once(
    port: str,
    baud: int = 115200,
    channel: int = 1,
    timeout_s: float = 5.0,
) -> Capture:
    """Liest genau einen Waveform-Dump aus dem Scope-Memory."""

    return read_captures(port, count=1, baud=baud, channel=channel, timeout_s=timeout_s)[0]
