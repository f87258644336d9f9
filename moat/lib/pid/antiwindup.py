"""
A PID controller with a filtered derivative, feed-forward, a saturated
output, and anti-windup.

The anti-windup mechanism uses an actuator saturation model as described
in chapter 6 of Åström and Murray, *Feedback Systems: An Introduction for
Scientists and Engineers*, 2008: whatever the output limits cut off is
fed back into the integrator, scaled by the anti-windup gain.
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
    "AntiWindupController",
    "AntiWindupControllerConfig",
    "AntiWindupControllerInput",
    "AntiWindupControllerState",
]

_ZERO = np.float32(0)
_ONE = np.float32(1)


@define(frozen=True, kw_only=True)
class AntiWindupControllerConfig:
    """
    Parameters of an `AntiWindupController`.

    Attributes:
        proportional_gain: P gain.
        integral_gain: I gain.
        derivative_gain: D gain.
        anti_windup_gain: Weight of the saturation error fed back to the
            integrator.
        integral_discharge_time_constant: Time (seconds) `discharge_integral`
            takes to drain the integral completely.
        low_pass_time_constant: Time constant of the derivative filter,
            in ticks. The cut-off frequency is its inverse.
        min_output: Lower output limit.
        max_output: Upper output limit.

    Both time constants must be nonzero and ``min_output`` must not exceed
    ``max_output``. None of this is checked: a zero time constant shows up
    as NaN in the state.
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
    def from_cfg(cls, cfg: Mapping[str, Any]) -> AntiWindupControllerConfig:
        """
        Build a config from a mapping::

            p: 0.1
            i: 0.01
            d: 0.0
            tf: 0.05  # derivative filter, seconds
            aw: 1.0  # anti-windup gain
            discharge: 10  # seconds

            # output limits
            min: .3
            max: .95
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
class AntiWindupControllerState:
    """
    Mutable state of an `AntiWindupController`.

    Attributes:
        control_error: Reference minus actual value.
        control_error_integrand: The control error plus the anti-windup
            correction. This is what gets integrated in the next step.
        control_error_integral: The integrand, integrated over time.
        control_error_derivative: Low-pass filtered time derivative of
            the control error.
        control_signal: The controller's output.
        unsaturated_control_signal: The output before applying the limits.
    """

    control_error: np.float32 = field(default=0, converter=np.float32)
    control_error_integrand: np.float32 = field(default=0, converter=np.float32)
    control_error_integral: np.float32 = field(default=0, converter=np.float32)
    control_error_derivative: np.float32 = field(default=0, converter=np.float32)
    control_signal: np.float32 = field(default=0, converter=np.float32)
    unsaturated_control_signal: np.float32 = field(default=0, converter=np.float32)


@define(frozen=True, kw_only=True)
class AntiWindupControllerInput:
    """
    Per-step input of an `AntiWindupController`.

    Attributes:
        reference_signal: The desired value.
        actual_signal: The measured value.
        feed_forward_signal: Added to the output, before saturation.
        sampling_interval: Ticks since the previous update.
    """

    reference_signal: np.float32 = field(converter=np.float32)
    actual_signal: np.float32 = field(converter=np.float32)
    feed_forward_signal: np.float32 = field(default=0, converter=np.float32)
    sampling_interval: int = field(converter=int)


@define
class AntiWindupController:
    """
    A PID controller with derivative filter, feed-forward, output limits
    and anti-windup.

    The error, integrand, integral and derivative are kept within
    ±`MAX_FLOAT32`, so they cannot become infinite. NaN is not filtered.
    """

    config: AntiWindupControllerConfig = field(factory=AntiWindupControllerConfig)
    state: AntiWindupControllerState = field(factory=AntiWindupControllerState)

    @classmethod
    def from_cfg(
        cls, cfg: Mapping[str, Any], state: Mapping[str, Any] | None = None
    ) -> AntiWindupController:
        """
        Build a controller from a config mapping and, optionally,
        a state previously saved with `get_state`.
        """
        res = cls(config=AntiWindupControllerConfig.from_cfg(cfg))
        if state:
            res.set_state(**state)
        return res

    def update(self, inp: AntiWindupControllerInput) -> None:
        """
        Run one control step. The result is in ``state.control_signal``.

        The integral is advanced by the *previous* step's integrand, so
        the anti-windup correction takes effect one step later.
        """
        cfg, st = self.config, self.state
        dt = seconds(inp.sampling_interval)
        tf = seconds(cfg.low_pass_time_constant)
        with np.errstate(all="ignore"):
            e = inp.reference_signal - inp.actual_signal
            integral = st.control_error_integrand * dt + st.control_error_integral
            # first-order low-pass on the difference quotient
            derivative = ((_ONE / tf) * (e - st.control_error) + st.control_error_derivative) / (
                dt / tf + _ONE
            )
            unsaturated = (
                e * cfg.proportional_gain
                + cfg.integral_gain * integral
                + cfg.derivative_gain * derivative
                + inp.feed_forward_signal
            )
            signal = clamp(unsaturated, cfg.min_output, cfg.max_output)
            integrand = e + cfg.anti_windup_gain * (signal - unsaturated)

            st.unsaturated_control_signal = unsaturated
            st.control_signal = signal
            st.control_error_integrand = clamp_finite(integrand)
            st.control_error_integral = clamp_finite(integral)
            st.control_error_derivative = clamp_finite(derivative)
            st.control_error = clamp_finite(e)

    def discharge_integral(self, dt: int) -> None:
        """
        Drain the integral linearly while the controller is idle.

        The integral loses ``dt / integral_discharge_time_constant`` of its
        value; it reaches zero after one full time constant and never
        changes sign.

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

    def get_state(self) -> attrdict:
        """
        Returns the controller state, as a mapping of floats.

        Pass the result to `set_state` (or `from_cfg`) to continue where
        this controller left off.
        """
        return get_fields(self.state)

    def set_state(self, **kw) -> None:
        "Restore (parts of) the controller state."
        logger.debug("Set state %r", kw)
        set_fields(self.state, kw)
