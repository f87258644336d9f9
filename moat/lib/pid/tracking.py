"""
A PID controller with tracking-mode anti-windup and bumpless transfer.

This controller works like `AntiWindupController`, except that the
anti-windup feedback compares the unsaturated output with the command the
actuator actually executed, as reported by the caller. When some other
controller (or a human) drives the actuator, the integrator follows along,
so that handing control back to this controller does not cause a jump.

See chapter 6 of Åström and Murray, *Feedback Systems*, 2008.
"""

from __future__ import annotations

import logging

import numpy as np
from attrs import define, field

from ._impl import (
    MAX_FLOAT32,
    clamp,
    clamp_finite,
    clear_fields,
    get_fields,
    seconds,
    set_fields,
    ticks,
)

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moat.util import attrdict

    from collections.abc import Mapping
    from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    "TrackingController",
    "TrackingControllerConfig",
    "TrackingControllerInput",
    "TrackingControllerState",
]

_ZERO = np.float32(0)
_ONE = np.float32(1)


@define(frozen=True, kw_only=True)
class TrackingControllerConfig:
    """
    Parameters of a `TrackingController`.

    See `AntiWindupControllerConfig` for the meaning of the fields.
    """

    proportional_gain: np.float32 = field(default=0, converter=np.float32)
    integral_gain: np.float32 = field(default=0, converter=np.float32)
    derivative_gain: np.float32 = field(default=0, converter=np.float32)
    anti_windup_gain: np.float32 = field(default=0, converter=np.float32)
    integral_discharge_time_constant: np.float32 = field(default=0, converter=np.float32)
    low_pass_time_constant: int = field(default=0, converter=int)
    min_output: np.float32 = field(default=-MAX_FLOAT32, converter=np.float32)
    max_output: np.float32 = field(default=MAX_FLOAT32, converter=np.float32)

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any]) -> TrackingControllerConfig:
        """
        Build a config from a mapping. The keys are the same as for
        `AntiWindupControllerConfig.from_cfg`.
        """
        lower = cfg.get("min")
        upper = cfg.get("max")
        return cls(
            proportional_gain=cfg["p"],
            integral_gain=cfg.get("i") or 0,
            derivative_gain=cfg.get("d") or 0,
            anti_windup_gain=cfg.get("aw") or 0,
            integral_discharge_time_constant=cfg.get("discharge") or 0,
            low_pass_time_constant=ticks(cfg.get("tf") or 0),
            min_output=-MAX_FLOAT32 if lower is None else lower,
            max_output=MAX_FLOAT32 if upper is None else upper,
        )


@define(kw_only=True)
class TrackingControllerState:
    """
    Mutable state of a `TrackingController`.

    ``unsaturated_control_signal`` is what gets compared to the applied
    control signal.
    """

    control_error: np.float32 = field(default=0, converter=np.float32)
    control_error_integrand: np.float32 = field(default=0, converter=np.float32)
    control_error_integral: np.float32 = field(default=0, converter=np.float32)
    control_error_derivative: np.float32 = field(default=0, converter=np.float32)
    control_signal: np.float32 = field(default=0, converter=np.float32)
    unsaturated_control_signal: np.float32 = field(default=0, converter=np.float32)


@define(frozen=True, kw_only=True)
class TrackingControllerInput:
    """
    Per-step input of a `TrackingController`.

    ``applied_control_signal`` is the command the actuator really
    executed, whether it came from this controller or not.
    """

    reference_signal: np.float32 = field(converter=np.float32)
    actual_signal: np.float32 = field(converter=np.float32)
    feed_forward_signal: np.float32 = field(default=0, converter=np.float32)
    applied_control_signal: np.float32 = field(converter=np.float32)
    sampling_interval: int = field(converter=int)


@define
class TrackingController:
    """
    A PID controller with derivative filter, feed-forward, output limits,
    and anti-windup plus bumpless transfer by tracking the applied signal.

    The error, integrand, integral and derivative are kept within
    ±`MAX_FLOAT32`. NaN is not filtered.
    """

    config: TrackingControllerConfig = field(factory=TrackingControllerConfig)
    state: TrackingControllerState = field(factory=TrackingControllerState)

    @classmethod
    def from_cfg(
        cls, cfg: Mapping[str, Any], state: Mapping[str, Any] | None = None
    ) -> TrackingController:
        "Build a controller from a config mapping and an optional saved state."
        res = cls(config=TrackingControllerConfig.from_cfg(cfg))
        if state:
            res.set_state(**state)
        return res

    def update(self, inp: TrackingControllerInput) -> None:
        """
        Run one control step. The result is in ``state.control_signal``.
        """
        cfg, st = self.config, self.state
        dt = seconds(inp.sampling_interval)
        tf = seconds(cfg.low_pass_time_constant)
        with np.errstate(all="ignore"):
            e = inp.reference_signal - inp.actual_signal
            integral = st.control_error_integrand * dt + st.control_error_integral
            derivative = ((_ONE / tf) * (e - st.control_error) + st.control_error_derivative) / (
                dt / tf + _ONE
            )
            unsaturated = (
                e * cfg.proportional_gain
                + cfg.integral_gain * integral
                + cfg.derivative_gain * derivative
                + inp.feed_forward_signal
            )
            # track the actuator, not our own saturated output
            integrand = e + cfg.anti_windup_gain * (inp.applied_control_signal - unsaturated)

            st.unsaturated_control_signal = unsaturated
            st.control_signal = clamp(unsaturated, cfg.min_output, cfg.max_output)
            st.control_error_integrand = clamp_finite(integrand)
            st.control_error_integral = clamp_finite(integral)
            st.control_error_derivative = clamp_finite(derivative)
            st.control_error = clamp_finite(e)

    def discharge_integral(self, dt: int) -> None:
        """
        Drain the integral linearly while the controller is idle.

        Args:
            dt: Ticks since the previous call.
        """
        st = self.state
        with np.errstate(all="ignore"):
            factor = clamp(
                _ONE - seconds(dt) / self.config.integral_discharge_time_constant, _ZERO, _ONE
            )
            st.control_error_integrand = _ZERO
            st.control_error_integral = factor * st.control_error_integral
        logger.debug("Discharge %s: integral %s", dt, st.control_error_integral)

    def reset(self) -> None:
        "Clear the controller state."
        logger.debug("Reset %r", self.config)
        clear_fields(self.state)

    def get_state(self) -> attrdict:  # noqa: D102
        return get_fields(self.state)

    def set_state(self, **kw) -> None:
        "Restore (parts of) the controller state."
        logger.debug("Set state %r", kw)
        set_fields(self.state, kw)
