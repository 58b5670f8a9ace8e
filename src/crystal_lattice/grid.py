"""
Dense lattice grids.

A grid stores one row of packed entity-type codes per unit cell, cells in
row-major z, y, x order. Carving only ever empties or retypes occupied
lanes; an empty lane stays empty for the lifetime of the grid.
"""

import logging

import numpy as np

from .cells import CUBIC_CELL, HEXAGONAL_CELL, CellTemplate, unpack_lanes
from .config import DEFAULT_SETTINGS, GridSettings
from .elements import Element, EntityType, as_entity_type
from .errors import InvalidGeometryError, MaskSizeError
from .masks import Mask, compile_mask
from .materials import (
    ConstantType,
    Elemental,
    MaterialType,
    constant,
    validate_material,
)
from .models import Basis, Entity, as_vector

logger = logging.getLogger(__name__)


def validate_bounds(bounds) -> np.ndarray:
    """Check that bounds are non-negative whole cell counts.

    Raises:
        InvalidGeometryError: For negative or fractional components
    """
    vector = as_vector(bounds, 'bounds')
    if np.any(vector < 0):
        raise InvalidGeometryError(f"Bounds must be non-negative, got {vector.tolist()}")
    if not np.array_equal(np.ceil(vector), vector):
        raise InvalidGeometryError(f"Bounds were not integers: {vector.tolist()}")
    return vector


class LatticeGrid:
    """Cells of one material inside a bounding box.

    Attributes:
        bounds: Requested extent in hkl cell units
        material: Material filling the grid
        dimensions: Allocated cell counts along x, y, z
        entity_types: (cells, lanes) int8 array of packed entity types
        scale: Lattice constants (nm) applied to h, k, l at extraction
    """

    template: CellTemplate

    def __init__(
        self,
        bounds,
        material: MaterialType,
        settings: GridSettings = DEFAULT_SETTINGS
    ):
        self.settings = settings
        self.bounds = validate_bounds(bounds)
        self.material = validate_material(material)
        self.scale = self._create_scale()

        dimensions = self._create_dimensions(self.bounds)
        granularity = settings.lane_granularity
        dimensions[0] = (dimensions[0] + granularity - 1) // granularity * granularity
        self.dimensions = dimensions

        unit = self.repeating_unit()
        self.entity_types = np.tile(unit, (self.cell_count, 1))
        logger.debug(
            "Created %s with dimensions %s for %r",
            type(self).__name__, self.dimensions.tolist(), self.material,
        )

        self._clip_to_bounds()

    # -- geometry specific to each basis --------------------------------

    def _create_scale(self) -> np.ndarray:
        raise NotImplementedError

    def _create_dimensions(self, bounds: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _bounding_normals(self) -> list[np.ndarray]:
        raise NotImplementedError

    # -------------------------------------------------------------------

    @property
    def cell_count(self) -> int:
        return int(np.prod(self.dimensions))

    @property
    def lane_count(self) -> int:
        return self.template.lane_count

    @property
    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.entity_types))

    def repeating_unit(self) -> np.ndarray:
        """Packed entity types of one freshly created cell."""
        lanes = self.lane_count
        if isinstance(self.material, Elemental):
            return np.full(lanes, int(self.material.element), dtype=np.int8)
        first, second = self.material.elements
        unit = np.empty(lanes, dtype=np.int8)
        unit[0::2] = int(first)
        unit[1::2] = int(second)
        return unit

    def _clip_to_bounds(self):
        """Empty every lane outside the bounds box."""
        for normal in self._bounding_normals():
            # Lower faces pass through the origin, upper faces through the far corner.
            origin = self.bounds if np.any(normal > 0) else np.zeros(3)
            self.replace(EntityType.EMPTY, self.mask(origin, normal))

    def mask(self, origin, normal) -> Mask:
        """Compile a plane into a mask over this grid's cells."""
        return compile_mask(self.template, self.dimensions, origin, normal, self.settings)

    def replace(self, entity_type: EntityType | Element | int, mask: Mask):
        """Overwrite occupied lanes selected by a mask.

        Lanes that are already empty are never filled again.

        Args:
            entity_type: New content of the selected lanes
            mask: Selection compiled for this grid

        Raises:
            MaskSizeError: If the mask was compiled for another grid size
        """
        code = as_entity_type(entity_type).pack()
        if len(mask) != self.cell_count:
            raise MaskSizeError(
                f"Mask covers {len(mask)} cells, grid has {self.cell_count}"
            )
        selected = unpack_lanes(mask.bits, self.lane_count)
        selected &= self.entity_types != 0
        self.entity_types[selected] = code

    def cell_indices(self, flat: np.ndarray) -> np.ndarray:
        """(x, y, z) index of flat cell positions."""
        dx, dy, _ = self.dimensions
        flat = np.asarray(flat, dtype=np.int64)
        return np.stack([flat % dx, (flat // dx) % dy, flat // (dx * dy)], axis=1)

    @property
    def atoms(self) -> np.ndarray:
        """(N, 4) float64 array of x, y, z (nm) and atomic number.

        Cells in z, y, x order, lanes in template order, empty lanes skipped.
        """
        cells, lanes = np.nonzero(self.entity_types)
        hkl = self.template.lower_corners(self.cell_indices(cells)) + self.template.offsets[lanes]
        output = np.empty((len(cells), 4), dtype=np.float64)
        output[:, :3] = self.template.to_cartesian(hkl, self.scale)
        output[:, 3] = self.entity_types[cells, lanes]
        return output

    @property
    def entities(self) -> tuple[Entity, ...]:
        """The occupied lanes as entities, in the same order as ``atoms``."""
        types: dict[int, EntityType] = {}
        output = []
        for x, y, z, code in self.atoms.tolist():
            code = int(code)
            if code not in types:
                types[code] = EntityType.unpack(code)
            output.append(Entity(position=(x, y, z), type=types[code]))
        return tuple(output)


class CubicGrid(LatticeGrid):
    """Grid of diamond-cubic cells; bounds are in cubic cell units."""

    template = CUBIC_CELL

    def _create_scale(self) -> np.ndarray:
        return np.full(3, constant(ConstantType.SQUARE, self.material))

    def _create_dimensions(self, bounds: np.ndarray) -> np.ndarray:
        dimensions = np.ceil(bounds + self.settings.bounds_epsilon).astype(np.int64)
        return np.maximum(dimensions, 0)

    def _bounding_normals(self) -> list[np.ndarray]:
        normals = []
        for axis in range(3):
            for sign in (-1.0, 1.0):
                normal = np.zeros(3)
                normal[axis] = sign
                normals.append(normal)
        return normals

    def repeating_unit(self) -> np.ndarray:
        unit = super().repeating_unit()
        if isinstance(self.material, Elemental) and self.material.element is Element.GOLD:
            # Face-centred cubic: keep only the even sub-lattice.
            unit[1::2] = 0
        return unit


class HexagonalGrid(LatticeGrid):
    """Grid of lonsdaleite cells; bounds are in hkl.

    Typical bounds are written as ``a * h + b * (h + 2 * k) + c * l``.
    """

    template = HEXAGONAL_CELL

    def _create_scale(self) -> np.ndarray:
        side = constant(ConstantType.HEXAGON, self.material)
        height = constant(ConstantType.PRISM, self.material)
        return np.array([side, side, height])

    def _create_dimensions(self, bounds: np.ndarray) -> np.ndarray:
        # Integer arithmetic so that e.g. 2 / 3 never rounds to the wrong cell.
        h, k, l = (int(value) for value in bounds)
        return np.array([(h + 2) // 3, k + 1, l], dtype=np.int64)

    def _bounding_normals(self) -> list[np.ndarray]:
        h = np.array([1.0, 0.0, 0.0])
        h2k = np.array([1.0, 2.0, 0.0])
        l = np.array([0.0, 0.0, 1.0])
        return [-h, h, -h2k, h2k, -l, l]


def create_grid(
    basis: Basis,
    bounds,
    material: MaterialType,
    settings: GridSettings = DEFAULT_SETTINGS
) -> LatticeGrid:
    """Create the grid class matching a basis."""
    if basis is Basis.CUBIC:
        return CubicGrid(bounds, material, settings)
    if basis is Basis.HEXAGONAL:
        return HexagonalGrid(bounds, material, settings)
    raise ValueError(f"Unknown basis: {basis!r}")
