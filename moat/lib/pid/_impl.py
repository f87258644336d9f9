"""
Single-precision helpers shared by the controllers.

All controller arithmetic happens on `numpy.float32` scalars, so that
overflow yields infinities and division by zero yields ``inf``/``NaN``
exactly as IEEE 754 prescribes, instead of raising `ZeroDivisionError`
or silently widening to double precision.
"""

from __future__ import annotations

from time import monotonic_ns as time_ns

import numpy as np
from attrs import fields

from moat.util import attrdict

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

__all__ = [
    "MAX_FLOAT32",
    "TICKS_PER_SEC",
    "Stopwatch",
    "clamp",
    "clamp_finite",
    "f32_abs",
    "f32_isnan",
    "seconds",
    "ticks",
]

# Durations are integer ticks of `time.monotonic_ns`.
TICKS_PER_SEC = 1_000_000_000

MAX_FLOAT32 = np.finfo(np.float32).max

_TICKS_PER_SEC = np.float32(TICKS_PER_SEC)


def clamp(x, lo, hi) -> np.float32:
    """
    Limit @x to the interval `lo`…`hi`.

    NaN in any argument results in NaN: a misconfigured controller
    must not be masked by its limits.
    """
    return np.maximum(lo, np.minimum(hi, x))


def clamp_finite(x) -> np.float32:
    "Keep @x away from ±inf. NaN passes through."
    return np.maximum(-MAX_FLOAT32, np.minimum(MAX_FLOAT32, x))


def seconds(d: int) -> np.float32:
    "Convert a duration in ticks to (single-precision) seconds."
    return np.float32(d) / _TICKS_PER_SEC


def ticks(s: float) -> int:
    "Convert seconds to a duration in ticks."
    return round(s * TICKS_PER_SEC)


def f32_abs(x) -> np.float32:  # noqa: D103
    return np.abs(np.float32(x))


def f32_isnan(x) -> bool:  # noqa: D103
    x = np.float32(x)
    return bool(x != x)  # noqa: PLR0124


def get_fields(rec) -> attrdict:
    """
    Dump an attrs record to an `attrdict` of plain floats.

    float32 → float is exact, so feeding the result back to
    `set_fields` restores the record bit for bit.
    """
    return attrdict((f.name, float(getattr(rec, f.name))) for f in fields(type(rec)))


def clear_fields(rec) -> None:
    "Zero all fields of an attrs record in place."
    for f in fields(type(rec)):
        setattr(rec, f.name, 0)


def set_fields(rec, kw: Mapping[str, Any]) -> None:
    """
    Update some fields of an attrs record in place.

    Unknown names are rejected before anything is changed.
    """
    names = {f.name for f in fields(type(rec))}
    for k in kw:
        if k not in names:
            raise TypeError(f"{type(rec).__name__} has no field {k!r}")
    for k, v in kw.items():
        setattr(rec, k, v)


class Stopwatch:
    """
    Measure the sampling interval of a control loop.

    ::

        sw = Stopwatch()
        while True:
            ctl.update(Input(..., sampling_interval=sw.lap()))

    Attributes:
        t: the timestamp of the previous lap, or `None`.
    """

    t: int | None = None

    def __init__(self, t: int | None = None):
        self.t = t

    def reset(self, t: int | None = None) -> None:
        "Forget the previous timestamp."
        self.t = t

    def lap(self, t: int | None = None) -> int:
        """
        Returns the number of ticks since the previous call.

        Args:
            t: Current time, in ticks. Defaults to `time.monotonic_ns`.

        The first call returns zero.
        """
        if t is None:
            t = time_ns()
        t0, self.t = self.t, t
        if t0 is None:
            return 0
        dt = t - t0
        if dt < 0:
            raise ValueError(f"Time went backwards: {t} {t0} {dt}")
        return dt
