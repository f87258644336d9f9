#!/usr/bin/python3
"""
Position control of a mass-spring-damper system.

For the first few seconds the force is set manually; then the
tracking controller takes over without a jump in the output.
"""

from __future__ import annotations

from matplotlib import pyplot as plt

from moat.lib.pid import (
    TrackingController,
    TrackingControllerConfig,
    TrackingControllerInput,
    ticks,
)

DT = 0.01
SWITCH = 4.0
REFERENCE = 1.0
MANUAL_FORCE = 0.8


class MassSpringDamper:
    "Semi-implicit Euler simulation of m·x'' + c·x' + k·x = F"

    def __init__(self, mass, spring_const, damping_const):
        self.m = mass
        self.k = spring_const
        self.c = damping_const
        self.x = 0.0
        self.v = 0.0

    def step(self, force, dt):
        a = (force - self.c * self.v - self.k * self.x) / self.m
        self.v += a * dt
        self.x += self.v * dt
        return self.x


system = MassSpringDamper(mass=1.0, spring_const=1.0, damping_const=0.2)

ctl = TrackingController(
    config=TrackingControllerConfig(
        proportional_gain=2.0,
        integral_gain=1.0,
        derivative_gain=1.5,
        anti_windup_gain=1.0,
        integral_discharge_time_constant=5.0,
        low_pass_time_constant=ticks(0.05),
        min_output=-2.0,
        max_output=2.0,
    )
)

# Control loop
time, meas, cont, unsat = [], [], [], []
position = 0.0
for i in range(1500):
    t = i * DT
    # what the actuator does: the manual value, then our own output
    applied = MANUAL_FORCE if t < SWITCH else float(ctl.state.control_signal)
    ctl.update(
        TrackingControllerInput(
            reference_signal=REFERENCE,
            actual_signal=position,
            applied_control_signal=applied,
            sampling_interval=ticks(DT),
        )
    )
    if t >= SWITCH:
        applied = float(ctl.state.control_signal)
    position = system.step(applied, DT)

    time.append(t)
    meas.append(position)
    cont.append(applied)
    unsat.append(float(ctl.state.unsaturated_control_signal))

# Plot result
fig, (ax1, ax2) = plt.subplots(2, 1)
fig.suptitle("Mass-Spring-Damper system, manual → automatic")
ax1.set_ylabel("Measured Position [m]")
ax1.plot(time, meas, "b")
ax1.axvline(SWITCH, color="k", linestyle=":")
ax1.grid()
ax2.set_xlabel("Time [s]")
ax2.set_ylabel("Force [N]")
ax2.plot(time, cont, "g", label="applied")
ax2.plot(time, unsat, "r--", label="controller, unsaturated")
ax2.axvline(SWITCH, color="k", linestyle=":")
ax2.legend()
ax2.grid()
plt.show()
