"""Forward-mode differentiable values.

A :class:`DifferentiableValue` pairs a value with its first-order partial
derivatives with respect to a fixed number ``F`` of free variables, i.e.
an order-1 truncated multivariate Taylor expansion.  The value may be a
scalar or an array; ``partials`` always has the value's shape plus one
trailing axis of length ``F``.  Two values are only combinable if they share
the same ``F``.

Values combine through the arithmetic operators, and any function built
from JAX operations can be lifted to differentiable inputs with
:func:`apply`, which pushes the ``F`` tangent directions through the
function with ``jax.jvp`` vectorised by ``jax.vmap``.  This is how attitude
laws and force models written for plain arrays are evaluated on
differentiable orbits.

``DifferentiableValue`` is registered as a JAX pytree.

Typical usage::

    from odjax.differentiation import variables, variable, apply
    x = variables(jnp.array([1.0, 2.0]), free_parameters=3)
    k = variable(3, 2, 0.5)
    y = k * apply(jnp.sin, x)     # y.partials has shape (2, 3)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from .config import get_dtype


class DifferentiableValue:
    """A value with first-order partial derivatives.

    Attributes:
        value: Value array of shape ``s`` (``()`` for a scalar).
        partials: Partial derivatives of shape ``s + (F,)``; entry ``[..., k]``
            is the derivative with respect to free variable ``k``.

    Args:
        value: Value.
        partials: Partial derivatives, one trailing axis longer than *value*.

    Raises:
        ValueError: If the shapes of *value* and *partials* disagree.
    """

    __slots__ = ("value", "partials")

    # Let numpy defer binary operators to this class
    __array_ufunc__ = None

    def __init__(self, value: ArrayLike, partials: ArrayLike) -> None:
        dtype = get_dtype()
        value = jnp.asarray(value, dtype=dtype)
        partials = jnp.asarray(partials, dtype=dtype)
        if partials.ndim != value.ndim + 1 or partials.shape[:-1] != value.shape:
            raise ValueError(
                f"Partials shape {partials.shape} does not match value shape "
                f"{value.shape} plus one free-variable axis"
            )
        self.value = value
        self.partials = partials

    @classmethod
    def _from_arrays(cls, value, partials):
        obj = object.__new__(cls)
        obj.value = value
        obj.partials = partials
        return obj

    @property
    def free_parameters(self) -> int:
        """Number of free variables ``F``."""
        return self.partials.shape[-1]

    @property
    def shape(self) -> tuple[int, ...]:
        return self.value.shape

    @property
    def ndim(self) -> int:
        return self.value.ndim

    def __len__(self):
        return len(self.value)

    def __getitem__(self, index) -> DifferentiableValue:
        return DifferentiableValue._from_arrays(self.value[index], self.partials[index])

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def extend(self, free_parameters: int) -> DifferentiableValue:
        """Return this value with ``free_parameters`` free variables.

        The value and existing partials are copied unchanged and the new
        partials are zero.  See :func:`extend`.
        """
        return extend(self, free_parameters)

    # Arithmetic

    def _coerce(self, other) -> DifferentiableValue:
        if isinstance(other, DifferentiableValue):
            if other.free_parameters != self.free_parameters:
                raise ValueError(
                    f"Cannot combine differentiable values with {self.free_parameters} "
                    f"and {other.free_parameters} free parameters"
                )
            return other
        return constant(self.free_parameters, other)

    def __neg__(self):
        return DifferentiableValue._from_arrays(-self.value, -self.partials)

    def __pos__(self):
        return self

    def __add__(self, other):
        other = self._coerce(other)
        value = self.value + other.value
        partials = jnp.broadcast_to(self.partials + other.partials,
                                    value.shape + (self.free_parameters,))
        return DifferentiableValue._from_arrays(value, partials)

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        return self.__add__(-self._coerce(other))

    def __rsub__(self, other):
        return self._coerce(other).__add__(-self)

    def __mul__(self, other):
        other = self._coerce(other)
        value = self.value * other.value
        partials = (self.partials * other.value[..., None]
                    + self.value[..., None] * other.partials)
        partials = jnp.broadcast_to(partials, value.shape + (self.free_parameters,))
        return DifferentiableValue._from_arrays(value, partials)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        other = self._coerce(other)
        value = self.value / other.value
        partials = ((self.partials * other.value[..., None]
                     - self.value[..., None] * other.partials)
                    / (other.value * other.value)[..., None])
        partials = jnp.broadcast_to(partials, value.shape + (self.free_parameters,))
        return DifferentiableValue._from_arrays(value, partials)

    def __rtruediv__(self, other):
        return self._coerce(other).__truediv__(self)

    def __pow__(self, exponent):
        if isinstance(exponent, DifferentiableValue):
            return apply(jnp.power, self, exponent)
        exponent = jnp.asarray(exponent, dtype=self.value.dtype)
        value = self.value ** exponent
        scale = exponent * self.value ** (exponent - 1.0)
        return DifferentiableValue._from_arrays(value, scale[..., None] * self.partials)

    def __rpow__(self, base):
        return apply(jnp.power, self._coerce(base), self)

    def __repr__(self):
        return f"DifferentiableValue(value={self.value!r}, partials={self.partials!r})"


jax.tree_util.register_pytree_node(
    DifferentiableValue,
    lambda dv: ((dv.value, dv.partials), None),
    lambda _, children: DifferentiableValue._from_arrays(*children),
)


# ──────────────────────────────────────────────
# Constructors
# ──────────────────────────────────────────────


def constant(free_parameters: int, value: ArrayLike) -> DifferentiableValue:
    """Create a differentiable constant: all partials are zero.

    Args:
        free_parameters: Number of free variables ``F``.
        value: Value, scalar or array.

    Returns:
        DifferentiableValue: Constant with ``F`` zero partials per component.
    """
    value = jnp.asarray(value, dtype=get_dtype())
    partials = jnp.zeros(value.shape + (free_parameters,), dtype=value.dtype)
    return DifferentiableValue._from_arrays(value, partials)


def variable(free_parameters: int, index: int, value: ArrayLike) -> DifferentiableValue:
    """Create a scalar free variable.

    Args:
        free_parameters: Number of free variables ``F``.
        index: Slot of this variable, ``0 <= index < F``.
        value: Scalar value.

    Returns:
        DifferentiableValue: Scalar with a unit partial in slot *index* and
            zero elsewhere.

    Raises:
        ValueError: If *index* is out of range.
    """
    if not 0 <= index < free_parameters:
        raise ValueError(
            f"Variable index {index} out of range for {free_parameters} free parameters"
        )
    value = jnp.asarray(value, dtype=get_dtype())
    partials = jnp.zeros((free_parameters,), dtype=value.dtype).at[index].set(1.0)
    return DifferentiableValue._from_arrays(value, partials)


def variables(values: ArrayLike, free_parameters: int, start: int = 0) -> DifferentiableValue:
    """Create a vector of consecutive free variables.

    Component ``i`` of *values* is seeded as free variable ``start + i``.

    Args:
        values: 1-D array of values.
        free_parameters: Number of free variables ``F``.
        start: Slot of the first component. Default: ``0``.

    Returns:
        DifferentiableValue: Vector whose partials form an identity block.

    Raises:
        ValueError: If the variables do not fit in ``F`` slots.
    """
    values = jnp.asarray(values, dtype=get_dtype())
    n = values.shape[0]
    if start < 0 or start + n > free_parameters:
        raise ValueError(
            f"Cannot seed {n} variables from slot {start} with {free_parameters} free parameters"
        )
    idx = jnp.arange(n)
    partials = jnp.zeros((n, free_parameters), dtype=values.dtype).at[idx, start + idx].set(1.0)
    return DifferentiableValue._from_arrays(values, partials)


def extend(dv: DifferentiableValue, free_parameters: int) -> DifferentiableValue:
    """Extend a differentiable value to more free variables.

    The value and the existing partials are copied unchanged; partials for
    the new variables are appended as zero, since those variables do not
    affect quantities computed before they were introduced.

    Args:
        dv: Value to extend.
        free_parameters: New number of free variables, at least ``dv``'s.

    Returns:
        DifferentiableValue: Extended value.

    Raises:
        ValueError: If *free_parameters* is smaller than ``dv.free_parameters``.
    """
    extra = free_parameters - dv.free_parameters
    if extra < 0:
        raise ValueError(
            f"Cannot shrink a differentiable value from {dv.free_parameters} "
            f"to {free_parameters} free parameters"
        )
    if extra == 0:
        return dv
    pad = [(0, 0)] * dv.value.ndim + [(0, extra)]
    return DifferentiableValue._from_arrays(dv.value, jnp.pad(dv.partials, pad))


# ──────────────────────────────────────────────
# Lifting JAX functions
# ──────────────────────────────────────────────


def _common_free_parameters(args) -> int | None:
    free = None
    for arg in args:
        if isinstance(arg, DifferentiableValue):
            if free is None:
                free = arg.free_parameters
            elif arg.free_parameters != free:
                raise ValueError(
                    f"Cannot combine differentiable values with {free} "
                    f"and {arg.free_parameters} free parameters"
                )
    return free


def apply(fn: Callable[..., Any], *args: Any) -> Any:
    """Evaluate a JAX function on differentiable arguments.

    Arguments that are :class:`DifferentiableValue` instances are treated as
    differentiable inputs; every other argument is held constant.  The
    result has the same pytree structure as ``fn``'s output with every array
    leaf replaced by a :class:`DifferentiableValue` whose partials are
    obtained by pushing each of the ``F`` input tangent directions through
    ``fn`` with ``jax.jvp``.

    If no argument is differentiable, ``fn(*args)`` is returned as is.

    Args:
        fn: Function composed of JAX operations.
        *args: Arguments of *fn*.

    Returns:
        Output of *fn* with differentiable leaves.

    Raises:
        ValueError: If differentiable arguments disagree on ``F``.

    Examples:
        ```python
        import jax.numpy as jnp
        from odjax.differentiation import apply, variables
        r = variables(jnp.array([7.0e6, 0.0, 0.0]), free_parameters=3)
        rn = apply(jnp.linalg.norm, r)
        rn.partials   # ~[1, 0, 0]
        ```
    """
    free = _common_free_parameters(args)
    if free is None:
        return fn(*args)

    positions = [i for i, arg in enumerate(args) if isinstance(arg, DifferentiableValue)]

    def restricted(*dv_values):
        full = list(args)
        for i, value in zip(positions, dv_values):
            full[i] = value
        return fn(*full)

    primals = tuple(args[i].value for i in positions)

    if free == 0:
        out = restricted(*primals)
        return jax.tree_util.tree_map(lambda v: constant(0, v), out)

    tangents = tuple(jnp.moveaxis(args[i].partials, -1, 0) for i in positions)

    def pushforward(*tangent):
        return jax.jvp(restricted, primals, tangent)[1]

    out = restricted(*primals)
    out_tangents = jax.vmap(pushforward)(*tangents)

    return jax.tree_util.tree_map(
        lambda v, t: DifferentiableValue._from_arrays(v, jnp.moveaxis(t, 0, -1)),
        out,
        out_tangents,
    )


def sin(x) -> DifferentiableValue | Array:
    return apply(jnp.sin, x)


def cos(x) -> DifferentiableValue | Array:
    return apply(jnp.cos, x)


def sqrt(x) -> DifferentiableValue | Array:
    return apply(jnp.sqrt, x)


def exp(x) -> DifferentiableValue | Array:
    return apply(jnp.exp, x)


def arctan2(y, x) -> DifferentiableValue | Array:
    return apply(jnp.arctan2, y, x)


def norm(x) -> DifferentiableValue | Array:
    """Euclidean norm of a vector."""
    return apply(jnp.linalg.norm, x)


def dot(a, b) -> DifferentiableValue | Array:
    """Dot product of two vectors."""
    return apply(jnp.dot, a, b)
