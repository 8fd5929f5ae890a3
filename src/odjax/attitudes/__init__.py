"""Spacecraft attitude.

- :class:`Attitude`: orientation quaternion with rotation rate and
  acceleration.
- Attitude laws :class:`InertialAttitude` and :class:`LofAttitude`.
- Quaternion ↔ rotation matrix conversions.
"""

from ._types import Attitude
from .conversions import quaternion_to_rotation_matrix, rotation_matrix_to_quaternion
from .providers import InertialAttitude, LofAttitude

__all__ = [
    "Attitude",
    "InertialAttitude",
    "LofAttitude",
    "quaternion_to_rotation_matrix",
    "rotation_matrix_to_quaternion",
]
