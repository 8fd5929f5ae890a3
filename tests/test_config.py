"""Tests for the odjax.config module."""

import jax
import jax.numpy as jnp
import pytest

from odjax.config import get_dtype, get_epoch_eq_tolerance, set_dtype
from odjax.constants import R_EARTH
from odjax.coordinates import state_eqn_to_eci
from odjax.epoch import Epoch
from odjax.orbits import orbital_period

pytestmark = pytest.mark.order("first")


@pytest.fixture(autouse=True)
def reset_dtype():
    """Restore the float64 default after each test."""
    yield
    set_dtype(jnp.float64)


class TestGetSetDtype:
    def test_default_dtype(self):
        assert get_dtype() == jnp.float64

    def test_import_enables_x64(self):
        assert jax.config.jax_enable_x64
        assert jnp.asarray(1.0, dtype=get_dtype()).dtype == jnp.float64

    def test_set_float32(self):
        set_dtype(jnp.float32)
        assert get_dtype() == jnp.float32

    def test_roundtrip(self):
        for dtype in (jnp.float32, jnp.float64):
            set_dtype(dtype)
            assert get_dtype() == dtype

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_invalid_dtype_string_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype("float32")

    def test_float64_enables_x64(self):
        set_dtype(jnp.float64)
        assert jax.config.jax_enable_x64 is True


class TestEpochEqTolerance:
    def test_float32_tolerance(self):
        set_dtype(jnp.float32)
        assert get_epoch_eq_tolerance() == 1e-3

    def test_float64_tolerance(self):
        set_dtype(jnp.float64)
        assert get_epoch_eq_tolerance() == 1e-9


class TestDtypeSwitchingOutputs:
    """Verify that output dtypes match the configured dtype."""

    def test_epoch_components_dtype(self):
        epc = Epoch(2024, 1, 1, 12, 0, 0.0)
        assert epc._seconds.dtype == jnp.float64
        assert epc._kahan_c.dtype == jnp.float64
        assert epc._jd.dtype == jnp.int32

    def test_orbital_period_dtype_float32(self):
        set_dtype(jnp.float32)
        T = orbital_period(R_EARTH + 500e3)
        assert T.dtype == jnp.float32

    def test_eqn_to_eci_dtype_float64(self):
        x_eq = jnp.array([R_EARTH + 500e3, 0.001, 0.002, 0.1, 0.2, 0.3])
        state = state_eqn_to_eci(x_eq)
        assert state.dtype == jnp.float64


class TestFloat64Precision:
    def test_epoch_kahan_precision_float64(self):
        """Many small additions accumulate negligible error."""
        epc = Epoch(2024, 1, 1)
        n_steps = 10000
        dt = 0.001

        for _ in range(n_steps):
            epc = epc + dt

        error = abs(float(epc - Epoch(2024, 1, 1)) - n_steps * dt)
        assert error < 1e-9
