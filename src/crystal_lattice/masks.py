"""
Plane-to-mask compiler.

Turns a half-space (plane origin + normal, in hkl) into one bit field per
grid cell, where bit i is set when lane i lies strictly on the side the
normal points to.

Testing every lane of every cell is the reference behaviour
(``compile_mask_naive``) but costs O(lanes) per cell. ``compile_mask``
classifies whole sectors first: a sector whose bounding corners all lie on
one side of the plane is resolved in a single fill, and only sectors the
plane passes through are refined, down to per-lane evaluation. Both paths
produce identical masks.
"""

import logging
from dataclasses import dataclass
from itertools import product

import numpy as np

from .cells import CellTemplate, pack_lanes
from .config import DEFAULT_SETTINGS, GridSettings
from .errors import MaskSizeError
from .models import as_vector

logger = logging.getLogger(__name__)

# Relative size of the margin around zero inside which a corner test is
# considered undecided; far larger than float64 rounding of the dot products.
_MARGIN = 1e-12


class Mask:
    """Per-cell lane selection, stored as a flat numpy array of bit fields.

    Cells are ordered like the grid: z slowest, x fastest.
    """

    __slots__ = ('bits',)

    def __init__(self, bits: np.ndarray):
        self.bits = np.asarray(bits)

    @classmethod
    def full(cls, count: int, template: CellTemplate) -> 'Mask':
        """Every lane selected."""
        return cls(np.full(count, template.full_mask, dtype=template.mask_dtype))

    @classmethod
    def zeros(cls, count: int, template: CellTemplate) -> 'Mask':
        """No lane selected."""
        return cls(np.zeros(count, dtype=template.mask_dtype))

    def copy(self) -> 'Mask':
        return Mask(self.bits.copy())

    def count_selected(self) -> int:
        """Number of selected lanes over all cells."""
        if len(self.bits) == 0:
            return 0
        return int(np.unpackbits(self.bits.view(np.uint8)).sum())

    def _check_size(self, other: 'Mask'):
        if len(self.bits) != len(other.bits):
            raise MaskSizeError(
                f"Combined masks of different sizes: {len(self.bits)} and {len(other.bits)}"
            )

    def __iand__(self, other: 'Mask') -> 'Mask':
        if not isinstance(other, Mask):
            return NotImplemented
        self._check_size(other)
        np.bitwise_and(self.bits, other.bits, out=self.bits)
        return self

    def __ior__(self, other: 'Mask') -> 'Mask':
        if not isinstance(other, Mask):
            return NotImplemented
        self._check_size(other)
        np.bitwise_or(self.bits, other.bits, out=self.bits)
        return self

    def __and__(self, other: 'Mask') -> 'Mask':
        result = self.copy()
        result &= other
        return result

    def __or__(self, other: 'Mask') -> 'Mask':
        result = self.copy()
        result |= other
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, Mask):
            return NotImplemented
        return len(self.bits) == len(other.bits) and bool(np.array_equal(self.bits, other.bits))

    __hash__ = None

    def __len__(self) -> int:
        return len(self.bits)

    def __repr__(self) -> str:
        return f"Mask(cells={len(self.bits)}, selected={self.count_selected()})"


@dataclass
class _Sectors:
    """A batch of cubic sectors of equal edge length, as lower cell indices."""

    lower: np.ndarray
    size: int

    def upper(self, dimensions: np.ndarray) -> np.ndarray:
        return np.minimum(self.lower + self.size, dimensions)

    def split(self, size: int, dimensions: np.ndarray) -> '_Sectors':
        """Children of edge ``size`` that start inside the grid."""
        steps = range(0, self.size, size)
        offsets = np.array(list(product(steps, steps, steps)), dtype=np.int64)
        children = (self.lower[:, None, :] + offsets[None, :, :]).reshape(-1, 3)
        inside = np.all(children < dimensions, axis=1)
        return _Sectors(children[inside], size)

    def cells(self, dimensions: np.ndarray) -> np.ndarray:
        return self.split(1, dimensions).lower

    def __len__(self) -> int:
        return len(self.lower)


def _flat_index(cells: np.ndarray, dimensions: np.ndarray) -> np.ndarray:
    return (cells[:, 2] * dimensions[1] + cells[:, 1]) * dimensions[0] + cells[:, 0]


def _all_cells(dimensions: np.ndarray) -> np.ndarray:
    """(x, y, z) index of every cell, in storage order."""
    z, y, x = np.meshgrid(
        np.arange(dimensions[2]),
        np.arange(dimensions[1]),
        np.arange(dimensions[0]),
        indexing='ij',
    )
    return np.stack([x.ravel(), y.ravel(), z.ravel()], axis=1).astype(np.int64)


def _prepare(dimensions, origin, normal):
    dims = np.asarray(dimensions, dtype=np.int64).reshape(3)
    o = as_vector(origin, 'plane origin')
    n = as_vector(normal, 'plane normal')
    return dims, o, n


def _evaluate(template, cells, origin, effective_normal) -> np.ndarray:
    """Exact per-lane bit fields for the given cells."""
    values = template.lane_values(cells, origin, effective_normal)
    return pack_lanes(values > 0, template.mask_dtype)


def compile_mask_naive(
    template: CellTemplate,
    dimensions,
    origin,
    normal
) -> Mask:
    """Evaluate the plane at every lane of every cell.

    Args:
        template: Cell template of the grid
        dimensions: Cell counts along x, y, z
        origin: Point on the plane (hkl)
        normal: Plane normal (hkl); zero selects everything

    Returns:
        Mask with bit i of a cell set when lane i is strictly in the "one" volume
    """
    dims, o, n = _prepare(dimensions, origin, normal)
    count = int(np.prod(dims))
    mask = Mask.full(count, template)
    if not np.any(n):
        return mask
    cells = _all_cells(dims)
    mask.bits[:] = _evaluate(template, cells, o, template.effective_normal(n))
    return mask


def compile_mask(
    template: CellTemplate,
    dimensions,
    origin,
    normal,
    settings: GridSettings = DEFAULT_SETTINGS
) -> Mask:
    """Classify a plane against a grid, coarse sectors first.

    Produces exactly the same mask as ``compile_mask_naive``.

    Args:
        template: Cell template of the grid
        dimensions: Cell counts along x, y, z
        origin: Point on the plane (hkl)
        normal: Plane normal (hkl); zero selects everything
        settings: Sector sizes to visit

    Returns:
        Mask over all cells of the grid
    """
    dims, o, n = _prepare(dimensions, origin, normal)
    count = int(np.prod(dims))
    mask = Mask.full(count, template)
    if count == 0 or not np.any(n):
        return mask

    effective = template.effective_normal(n)
    reach = float(np.abs(o).max()) + 4.0 * float(dims.max()) + 1.0
    margin = _MARGIN * float(np.abs(effective).sum()) * reach

    levels = settings.sector_levels
    top = levels[0]
    counts = (dims + top - 1) // top
    pending = _Sectors(_all_cells(counts) * top, top)

    for level, size in enumerate(levels):
        if level > 0:
            pending = pending.split(size, dims)
        if len(pending) == 0:
            break

        values = template.sector_values(pending.lower, pending.upper(dims), o, effective)
        negative = np.all(values < -margin, axis=1)
        positive = np.all(values > margin, axis=1)

        # Positive sectors keep the all-ones initial fill.
        empty = _Sectors(pending.lower[negative], size)
        if len(empty):
            mask.bits[_flat_index(empty.cells(dims), dims)] = 0

        straddling = ~(negative | positive)
        logger.debug(
            "Sector size %d: %d below, %d above, %d straddling",
            size, int(negative.sum()), int(positive.sum()), int(straddling.sum()),
        )
        pending = _Sectors(pending.lower[straddling], size)

    if len(pending):
        cells = pending.cells(dims)
        mask.bits[_flat_index(cells, dims)] = _evaluate(template, cells, o, effective)
    return mask
