from __future__ import annotations  # noqa: D100

import pytest
from math import isfinite

import attrs
import numpy as np

from moat.util import attrdict

from moat.lib.pid import (
    AntiWindupController,
    AntiWindupControllerInput,
    TrackingController,
    TrackingControllerConfig,
    TrackingControllerInput,
    TrackingControllerState,
    ticks,
)

DT = ticks(0.1)


def step(c, ref, act, applied, ff=0, dt=DT):
    "run one update"
    c.update(
        TrackingControllerInput(
            reference_signal=ref,
            actual_signal=act,
            feed_forward_signal=ff,
            applied_control_signal=applied,
            sampling_interval=dt,
        )
    )
    return c.state


def test_same_as_antiwindup(aw_cfg, tr_cfg):  # noqa: D103
    # If the actuator applies our own output, we behave like the
    # anti-windup controller.
    aw = AntiWindupController(config=aw_cfg)
    tr = TrackingController(config=tr_cfg)
    rng = np.random.default_rng(7)
    for ref, act, ff in zip(
        rng.uniform(-3, 3, 300), rng.uniform(-3, 3, 300), rng.uniform(-1, 1, 300), strict=True
    ):
        aw.update(
            AntiWindupControllerInput(
                reference_signal=ref,
                actual_signal=act,
                feed_forward_signal=ff,
                sampling_interval=DT,
            )
        )
        st = step(tr, ref, act, aw.state.control_signal, ff=ff)
        assert st.control_signal == aw.state.control_signal
        assert tuple(tr.get_state().values()) == tuple(aw.get_state().values())


def test_output_limits(tr_cfg):  # noqa: D103
    c = TrackingController(config=attrs.evolve(tr_cfg, derivative_gain=0.5))
    lower, upper = tr_cfg.min_output, tr_cfg.max_output
    rng = np.random.default_rng(3)
    for ref, act, applied, dt in zip(
        rng.uniform(-10, 10, 2000),
        rng.uniform(-10, 10, 2000),
        rng.uniform(-5, 5, 2000),
        rng.integers(ticks(0.001), ticks(0.5), 2000),
        strict=True,
    ):
        st = step(c, ref, act, applied, dt=dt)
        assert lower <= st.control_signal <= upper
        if lower < st.unsaturated_control_signal < upper:
            assert st.control_signal == st.unsaturated_control_signal


def test_tracks_applied_signal(tr_cfg):  # noqa: D103
    # Manual mode: someone else holds the actuator at 0.5.
    # The integrator follows, so that our output matches.
    c = TrackingController(config=tr_cfg)
    for _ in range(200):
        st = step(c, 1, 1, 0.5)
    assert st.unsaturated_control_signal == pytest.approx(0.5, abs=1e-4)
    assert st.control_signal == pytest.approx(0.5, abs=1e-4)


def test_bumpless_transfer(aw_cfg, tr_cfg):  # noqa: D103
    tr = TrackingController(config=tr_cfg)
    aw = AntiWindupController(config=aw_cfg)
    manual = 0.5

    # manual mode
    for _ in range(200):
        step(tr, 1, 1, manual)
        aw.update(
            AntiWindupControllerInput(reference_signal=1, actual_signal=1, sampling_interval=DT)
        )

    # switch to automatic; the actuator now applies our own output
    out = tr.state.control_signal
    st = step(tr, 1, 1, out)
    assert st.control_signal == pytest.approx(manual, abs=1e-3)

    # the anti-windup controller never saw the manual signal and jumps
    assert aw.state.control_signal == 0


def test_saturated_tracking(tr_cfg):  # noqa: D103
    # The applied signal is limited by the actuator, as is our output
    c = TrackingController(config=tr_cfg)
    integral = []
    for _ in range(500):
        st = step(c, 10, 0, c.state.control_signal if integral else 0)
        integral.append(st.control_error_integral)
    assert st.control_signal == 1
    assert integral[-1] == pytest.approx(integral[-2], abs=1e-5)


def test_discharge(tr_cfg):  # noqa: D103
    c = TrackingController(config=tr_cfg)
    c.set_state(control_error_integral=-4, control_error_integrand=1)
    c.discharge_integral(0)
    assert c.state.control_error_integral == -4
    assert c.state.control_error_integrand == 0
    c.discharge_integral(ticks(1))
    assert c.state.control_error_integral == -2
    c.discharge_integral(ticks(3))
    assert c.state.control_error_integral == 0


def test_finite(tr_cfg):  # noqa: D103
    c = TrackingController(config=attrs.evolve(tr_cfg, derivative_gain=1, max_output=10))
    for _ in range(1000):
        st = step(c, -3e38, 3e37, 0, dt=1)
        for v in (
            st.control_error,
            st.control_error_integrand,
            st.control_error_integral,
            st.control_error_derivative,
            st.control_signal,
        ):
            assert isfinite(v)
    assert st.control_signal == -1


def test_nan_applied(tr_cfg):  # noqa: D103
    c = TrackingController(config=tr_cfg)
    st = step(c, 1, 0, float("nan"))
    assert np.isnan(st.control_error_integrand)
    st = step(c, 1, 0, 0)
    assert np.isnan(st.control_error_integral)
    assert np.isnan(st.control_signal)


def test_reset(tr_cfg):  # noqa: D103
    c = TrackingController(config=tr_cfg)
    for _ in range(10):
        step(c, 10, 0, 1)
    c.reset()
    assert c.state == TrackingControllerState()
    c.reset()
    assert c.state == TrackingControllerState()


def test_from_cfg():  # noqa: D103
    cfg = attrdict(p=2, i=1, tf=0.01, aw=0.5, discharge=5, max=3)
    state = attrdict(control_error_integral=0.25)
    c = TrackingController.from_cfg(cfg, state=state)
    assert c.config == TrackingControllerConfig(
        proportional_gain=2,
        integral_gain=1,
        anti_windup_gain=0.5,
        integral_discharge_time_constant=5,
        low_pass_time_constant=ticks(0.01),
        max_output=3,
    )
    assert c.state.control_error_integral == 0.25
    assert c.state.control_error == 0
