"""
A basic PID controller: no output limits, no derivative filter.
"""

from __future__ import annotations

import logging

import numpy as np
from attrs import define, field

from ._impl import clear_fields, get_fields, seconds, set_fields

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moat.util import attrdict

    from collections.abc import Mapping
    from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["Controller", "ControllerConfig", "ControllerInput", "ControllerState"]


@define(frozen=True, kw_only=True)
class ControllerConfig:
    """
    Gains of a `Controller`.
    """

    proportional_gain: np.float32 = field(default=0, converter=np.float32)
    integral_gain: np.float32 = field(default=0, converter=np.float32)
    derivative_gain: np.float32 = field(default=0, converter=np.float32)

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any]) -> ControllerConfig:
        """
        Build a config from a mapping::

            p: 2.0
            i: 1.0
            d: 1.0
        """
        return cls(
            proportional_gain=cfg["p"],
            integral_gain=cfg.get("i") or 0,
            derivative_gain=cfg.get("d") or 0,
        )


@define(kw_only=True)
class ControllerState:
    "Mutable state of a `Controller`."

    control_error: np.float32 = field(default=0, converter=np.float32)
    control_error_integral: np.float32 = field(default=0, converter=np.float32)
    control_error_derivative: np.float32 = field(default=0, converter=np.float32)
    control_signal: np.float32 = field(default=0, converter=np.float32)


@define(frozen=True, kw_only=True)
class ControllerInput:
    """
    Per-step input of a `Controller`.

    ``sampling_interval`` is the time since the previous update, in ticks.
    """

    reference_signal: np.float32 = field(converter=np.float32)
    actual_signal: np.float32 = field(converter=np.float32)
    sampling_interval: int = field(converter=int)


@define
class Controller:
    """
    A basic PID controller.

    The derivative is the raw difference quotient of the control error,
    and the integral is neither limited nor protected against wind-up.
    The sampling interval must be positive.
    """

    config: ControllerConfig = field(factory=ControllerConfig)
    state: ControllerState = field(factory=ControllerState)

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any], state: Mapping[str, Any] | None = None) -> Controller:
        """
        Build a controller from a config mapping and, optionally,
        a state previously saved with `get_state`.
        """
        res = cls(config=ControllerConfig.from_cfg(cfg))
        if state:
            res.set_state(**state)
        return res

    def update(self, inp: ControllerInput) -> None:
        """
        Run one control step. The result is in ``state.control_signal``.
        """
        cfg, st = self.config, self.state
        dt = seconds(inp.sampling_interval)
        with np.errstate(all="ignore"):
            previous_error = st.control_error
            st.control_error = inp.reference_signal - inp.actual_signal
            st.control_error_derivative = (st.control_error - previous_error) / dt
            st.control_error_integral += st.control_error * dt
            st.control_signal = (
                cfg.proportional_gain * st.control_error
                + cfg.integral_gain * st.control_error_integral
                + cfg.derivative_gain * st.control_error_derivative
            )

    def reset(self) -> None:
        "Clear the controller state."
        logger.debug("Reset %r", self.config)
        clear_fields(self.state)

    def get_state(self) -> attrdict:  # noqa: D102
        return get_fields(self.state)

    def set_state(self, **kw) -> None:
        "Restore (parts of) the controller state."
        set_fields(self.state, kw)
