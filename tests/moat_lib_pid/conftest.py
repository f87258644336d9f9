from __future__ import annotations  # noqa: D100

import pytest

from moat.lib.pid import AntiWindupControllerConfig, TrackingControllerConfig, ticks


@pytest.fixture
def aw_cfg():
    "a saturating anti-windup config"
    return AntiWindupControllerConfig(
        proportional_gain=1.0,
        integral_gain=1.0,
        derivative_gain=0.0,
        anti_windup_gain=1.0,
        integral_discharge_time_constant=2.0,
        low_pass_time_constant=ticks(0.05),
        min_output=-1.0,
        max_output=1.0,
    )


@pytest.fixture
def tr_cfg():
    "the same, for a tracking controller"
    return TrackingControllerConfig(
        proportional_gain=1.0,
        integral_gain=1.0,
        derivative_gain=0.0,
        anti_windup_gain=1.0,
        integral_discharge_time_constant=2.0,
        low_pass_time_constant=ticks(0.05),
        min_output=-1.0,
        max_output=1.0,
    )
