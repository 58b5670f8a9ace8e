"""
Lattice: the entry point for describing and building a crystal lattice.
"""

import logging
from collections import Counter
from collections.abc import Callable

import numpy as np

from .config import DEFAULT_SETTINGS, GridSettings
from .context import ConstructionContext
from .elements import Element
from .materials import MaterialType
from .models import Basis, Entity

logger = logging.getLogger(__name__)

BuildFunction = Callable[[ConstructionContext, np.ndarray, np.ndarray, np.ndarray], None]


class Lattice:
    """A carved crystal lattice.

    The build callable receives a fresh ``ConstructionContext`` and the basis
    vectors ``h, k, l``. It must declare bounds and material, and may carve
    the lattice with nested ``volume``/``concave``/``convex`` scopes.

    Args:
        basis: Unit-cell family
        build: Description of the lattice
        settings: Grid and mask compiler settings

    Example:
        >>> def build(ctx, h, k, l):
        ...     ctx.bounds(4 * h + 4 * k + 4 * l)
        ...     ctx.material(Elemental(Element.CARBON))
        >>> lattice = Lattice(Basis.CUBIC, build)
        >>> len(lattice)
        621
    """

    def __init__(
        self,
        basis: Basis,
        build: BuildFunction,
        settings: GridSettings = DEFAULT_SETTINGS
    ):
        context = ConstructionContext(basis, settings)
        h, k, l = context.basis_vectors
        build(context, h, k, l)
        self._grid = context.finish()
        self._basis = basis
        self._entities: tuple[Entity, ...] | None = None

        atoms = self._grid.atoms
        atoms.setflags(write=False)
        self._atoms = atoms
        logger.debug("Built %s lattice with %d atoms", basis.value, len(atoms))

    @property
    def basis(self) -> Basis:
        return self._basis

    @property
    def material(self) -> MaterialType:
        return self._grid.material

    @property
    def bounds(self) -> np.ndarray:
        return self._grid.bounds.copy()

    @property
    def dimensions(self) -> tuple[int, int, int]:
        """Allocated cell counts along x, y, z."""
        return tuple(int(value) for value in self._grid.dimensions)

    @property
    def atoms(self) -> np.ndarray:
        """Read-only (N, 4) array of x, y, z in nm and atomic number."""
        return self._atoms

    @property
    def entities(self) -> tuple[Entity, ...]:
        """Every atom of the lattice, cells in z, y, x order."""
        if self._entities is None:
            self._entities = self._grid.entities
        return self._entities

    def __len__(self) -> int:
        return len(self._atoms)

    def element_counts(self) -> Counter:
        """Number of atoms of each element."""
        codes, counts = np.unique(self._atoms[:, 3].astype(np.int64), return_counts=True)
        return Counter({Element(int(code)): int(count) for code, count in zip(codes, counts)})

    def to_dict(self) -> dict:
        """Convert to a dictionary of plain Python values."""
        return {
            'basis': self._basis.value,
            'material': [element.symbol for element in self.material.elements],
            'bounds': self._grid.bounds.tolist(),
            'dimensions': list(self.dimensions),
            'positions': self._atoms[:, :3].tolist(),
            'atomic_numbers': self._atoms[:, 3].astype(np.int64).tolist(),
        }

    def __repr__(self) -> str:
        return f"Lattice(basis={self._basis.name}, material={self.material!r}, atoms={len(self)})"
