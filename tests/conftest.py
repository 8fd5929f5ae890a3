import jax.numpy as jnp
import pytest

from odjax.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    Tests that switch precision (test_config.py) leave the module-wide dtype
    changed; this fixture restores the default for every other test.
    """
    set_dtype(jnp.float64)
