"""Two-body orbital mechanics functions.

This sub-module provides functions for:

- **Mean motion and period** of an orbit around a central body.
- **Anomaly conversions**: converting between mean, eccentric, and true
  anomalies, including a JAX-traceable Kepler equation solver.
- **Two-body dynamics**: point-mass acceleration and the Keplerian rate of
  the equinoctial elements.
"""

from .keplerian import (
    accel_keplerian,
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_mean_to_true,
    anomaly_true_to_eccentric,
    anomaly_true_to_mean,
    eqn_keplerian_rate,
    mean_motion,
    orbital_period,
)

__all__ = [
    "mean_motion",
    "orbital_period",
    "anomaly_eccentric_to_mean",
    "anomaly_mean_to_eccentric",
    "anomaly_true_to_eccentric",
    "anomaly_eccentric_to_true",
    "anomaly_true_to_mean",
    "anomaly_mean_to_true",
    "accel_keplerian",
    "eqn_keplerian_rate",
]
