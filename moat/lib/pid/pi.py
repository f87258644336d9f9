"""
A PI controller whose integral is clamped to a fixed range.
"""

from __future__ import annotations

import logging

import numpy as np
from attrs import define, field

from ._impl import MAX_FLOAT32, clamp, clear_fields, get_fields, seconds, set_fields

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moat.util import attrdict

    from collections.abc import Mapping
    from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["PIController", "PIControllerConfig", "PIControllerInput", "PIControllerState"]


@define(frozen=True, kw_only=True)
class PIControllerConfig:
    """
    Gains and integral limits of a `PIController`.

    ``min_integral_error`` must not exceed ``max_integral_error``.
    This is not checked.
    """

    proportional_gain: np.float32 = field(default=0, converter=np.float32)
    integral_gain: np.float32 = field(default=0, converter=np.float32)
    min_integral_error: np.float32 = field(default=-MAX_FLOAT32, converter=np.float32)
    max_integral_error: np.float32 = field(default=MAX_FLOAT32, converter=np.float32)

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any]) -> PIControllerConfig:
        """
        Build a config from a mapping::

            p: 1.5
            i: 0.2
            # integral limits
            min: -10
            max: 10
        """
        lower = cfg.get("min")
        upper = cfg.get("max")
        return cls(
            proportional_gain=cfg["p"],
            integral_gain=cfg.get("i") or 0,
            min_integral_error=-MAX_FLOAT32 if lower is None else lower,
            max_integral_error=MAX_FLOAT32 if upper is None else upper,
        )


@define(kw_only=True)
class PIControllerState:
    "Mutable state of a `PIController`."

    control_error: np.float32 = field(default=0, converter=np.float32)
    control_error_integral: np.float32 = field(default=0, converter=np.float32)
    control_signal: np.float32 = field(default=0, converter=np.float32)


@define(frozen=True, kw_only=True)
class PIControllerInput:
    "Per-step input of a `PIController`."

    reference_signal: np.float32 = field(converter=np.float32)
    actual_signal: np.float32 = field(converter=np.float32)
    sampling_interval: int = field(converter=int)


@define
class PIController:
    """
    A PI controller.

    Wind-up is prevented by limiting the integral itself, after adding
    each step's contribution. There is no derivative term and the output
    is not limited.
    """

    config: PIControllerConfig = field(factory=PIControllerConfig)
    state: PIControllerState = field(factory=PIControllerState)

    @classmethod
    def from_cfg(
        cls, cfg: Mapping[str, Any], state: Mapping[str, Any] | None = None
    ) -> PIController:
        """
        Build a controller from a config mapping and, optionally,
        a state previously saved with `get_state`.
        """
        res = cls(config=PIControllerConfig.from_cfg(cfg))
        if state:
            res.set_state(**state)
        return res

    def update(self, inp: PIControllerInput) -> None:
        """
        Run one control step. The result is in ``state.control_signal``.
        """
        cfg, st = self.config, self.state
        dt = seconds(inp.sampling_interval)
        with np.errstate(all="ignore"):
            e = inp.reference_signal - inp.actual_signal
            st.control_error = e
            st.control_error_integral = clamp(
                st.control_error_integral + e * dt,
                cfg.min_integral_error,
                cfg.max_integral_error,
            )
            st.control_signal = (
                cfg.proportional_gain * e + cfg.integral_gain * st.control_error_integral
            )

    def reset(self) -> None:
        "Clear the controller state."
        logger.debug("Reset %r", self.config)
        clear_fields(self.state)

    def get_state(self) -> attrdict:
        """
        Returns the controller state, as a mapping of floats.
        """
        return get_fields(self.state)

    def set_state(self, **kw) -> None:
        "Restore (parts of) the controller state."
        set_fields(self.state, kw)
