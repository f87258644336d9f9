"""
This library contains discrete-time [PID controllers](https://en.wikipedia.org/wiki/Proportional%E2%80%93integral%E2%80%93derivative_controller)
for fixed-interval control loops.

Each controller consists of an immutable config and a mutable state.
Per sampling period, the caller builds an input record (reference value,
measured value, elapsed time) and calls ``update``; the result is read
from the state afterwards.

- `Controller`: plain PID, no limits, no filtering.
- `PIController`: PI with a clamped integral.
- `AntiWindupController`: filtered derivative, feed-forward, output limits,
  anti-windup via an actuator saturation model.
- `TrackingController`: like `AntiWindupController`, but the integrator
  tracks the actually-applied control signal, for bumpless transfer.

All arithmetic is single precision. Durations are integer ticks
(`TICKS_PER_SEC` per second, i.e. `time.monotonic_ns` units).

Common features:
- introspection: everything the controller knows is in its ``state``
- saving and restoring the controller's state
- building a controller from a config mapping
"""

from __future__ import annotations

from ._impl import MAX_FLOAT32 as MAX_FLOAT32
from ._impl import TICKS_PER_SEC as TICKS_PER_SEC
from ._impl import Stopwatch as Stopwatch
from ._impl import clamp as clamp
from ._impl import clamp_finite as clamp_finite
from ._impl import f32_abs as f32_abs
from ._impl import f32_isnan as f32_isnan
from ._impl import seconds as seconds
from ._impl import ticks as ticks
from .antiwindup import AntiWindupController as AntiWindupController
from .antiwindup import AntiWindupControllerConfig as AntiWindupControllerConfig
from .antiwindup import AntiWindupControllerInput as AntiWindupControllerInput
from .antiwindup import AntiWindupControllerState as AntiWindupControllerState
from .basic import Controller as Controller
from .basic import ControllerConfig as ControllerConfig
from .basic import ControllerInput as ControllerInput
from .basic import ControllerState as ControllerState
from .pi import PIController as PIController
from .pi import PIControllerConfig as PIControllerConfig
from .pi import PIControllerInput as PIControllerInput
from .pi import PIControllerState as PIControllerState
from .tracking import TrackingController as TrackingController
from .tracking import TrackingControllerConfig as TrackingControllerConfig
from .tracking import TrackingControllerInput as TrackingControllerInput
from .tracking import TrackingControllerState as TrackingControllerState

__all__ = [
    "MAX_FLOAT32",
    "TICKS_PER_SEC",
    "AntiWindupController",
    "AntiWindupControllerConfig",
    "AntiWindupControllerInput",
    "AntiWindupControllerState",
    "Controller",
    "ControllerConfig",
    "ControllerInput",
    "ControllerState",
    "PIController",
    "PIControllerConfig",
    "PIControllerInput",
    "PIControllerState",
    "Stopwatch",
    "TrackingController",
    "TrackingControllerConfig",
    "TrackingControllerInput",
    "TrackingControllerState",
    "clamp",
    "clamp_finite",
    "f32_abs",
    "f32_isnan",
    "seconds",
    "ticks",
]
