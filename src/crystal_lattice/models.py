"""
Data classes shared across the construction engine.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from .elements import Element, EntityType
from .errors import InvalidGeometryError

Vector = tuple[float, float, float]


def as_vector(value, name: str = 'vector') -> np.ndarray:
    """Coerce a 3-vector-like value to a float64 array of shape (3,).

    Raises:
        InvalidGeometryError: If the value is not three finite numbers.
    """
    try:
        array = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise InvalidGeometryError(f"{name} is not numeric: {value!r}") from None
    if array.shape != (3,):
        raise InvalidGeometryError(f"{name} must have 3 components, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise InvalidGeometryError(f"{name} must be finite, got {array.tolist()}")
    return array


class Basis(Enum):
    """Unit-cell geometry family.

    CUBIC: edges of a cube, orthogonal h, k, l.
    HEXAGONAL: sides of a hexagonal prism, h and k at 120 degrees.
    """

    CUBIC = 'cubic'
    HEXAGONAL = 'hexagonal'

    def unit_vectors(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """The three canonical basis vectors h, k, l in crystal coordinates."""
        identity = np.eye(3, dtype=np.float64)
        return identity[0].copy(), identity[1].copy(), identity[2].copy()


Cubic = Basis.CUBIC
Hexagonal = Basis.HEXAGONAL


@dataclass(frozen=True)
class Plane:
    """Half-space boundary in crystal coordinates.

    The "one" volume is the open side the normal points toward.
    """

    origin: Vector
    normal: Vector

    @classmethod
    def create(cls, origin, normal) -> 'Plane':
        o = as_vector(origin, 'plane origin')
        n = as_vector(normal, 'plane normal')
        return cls(origin=tuple(o.tolist()), normal=tuple(n.tolist()))

    @property
    def is_degenerate(self) -> bool:
        """True for a zero normal, which constrains nothing."""
        return not any(self.normal)


@dataclass(frozen=True)
class Entity:
    """An atom of the finished lattice: position in nanometres plus type."""

    position: Vector
    type: EntityType

    @property
    def atomic_number(self) -> int:
        return self.type.pack()

    @property
    def element(self) -> Element | None:
        return self.type.element

    @property
    def is_empty(self) -> bool:
        return self.type.is_empty

    @property
    def storage(self) -> tuple[float, float, float, float]:
        """Position and atomic number packed as one 4-tuple."""
        return (*self.position, float(self.atomic_number))
