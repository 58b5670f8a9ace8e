"""
Unit-cell templates.

A template fixes, for one basis, where the lanes of a cell sit relative to
the cell's lower corner, how cell indices map to crystal (hkl) coordinates,
and how hkl coordinates map to cartesian nanometres. The mask compiler and
the grid only ever talk to a template, never to a basis directly.
"""

import numpy as np

from .models import Basis

# Sign pattern of the 8 corners of a box, x slowest
_CORNER_BITS = np.array(
    [[(i >> 2) & 1, (i >> 1) & 1, i & 1] for i in range(8)],
    dtype=np.float64,
)

_SQRT3_2 = float(np.sqrt(3.0) / 2.0)


def pack_lanes(selected: np.ndarray, dtype=np.uint8) -> np.ndarray:
    """Pack an (N, lanes) boolean array into one bit field per row.

    Lane i maps to bit ``1 << i``.
    """
    selected = np.asarray(selected, dtype=bool)
    lanes = selected.shape[1]
    flags = (np.ones(lanes, dtype=np.int64) << np.arange(lanes)).astype(dtype)
    if selected.shape[0] == 0:
        return np.zeros(0, dtype=dtype)
    return np.bitwise_or.reduce(np.where(selected, flags, 0).astype(dtype), axis=1)


def unpack_lanes(masks: np.ndarray, lanes: int) -> np.ndarray:
    """Inverse of ``pack_lanes``: bit fields to an (N, lanes) boolean array."""
    masks = np.asarray(masks)
    shifts = np.arange(lanes).astype(masks.dtype)
    return ((masks[:, None] >> shifts[None, :]) & 1).astype(bool)


class CellTemplate:
    """Lane layout of one unit cell.

    Attributes:
        basis: Basis this template belongs to
        offsets: (lanes, 3) lane positions in hkl relative to the lower corner
        mask_dtype: Unsigned integer type wide enough for one bit per lane
    """

    basis: Basis
    offsets: np.ndarray
    mask_dtype: type

    @property
    def lane_count(self) -> int:
        return len(self.offsets)

    @property
    def full_mask(self) -> int:
        return (1 << self.lane_count) - 1

    def lower_corners(self, cells: np.ndarray) -> np.ndarray:
        """hkl lower corner of each (x, y, z) cell index."""
        raise NotImplementedError

    def sector_corners(self, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
        """Corners (N, 8, 3) of hkl boxes holding every lane of cells in [lower, upper)."""
        raise NotImplementedError

    def effective_normal(self, normal: np.ndarray) -> np.ndarray:
        """Normal to dot with hkl displacements for a real-space sign test."""
        raise NotImplementedError

    def to_cartesian(self, hkl: np.ndarray, scale: np.ndarray) -> np.ndarray:
        """Map (N, 3) hkl coordinates to nanometres."""
        raise NotImplementedError

    def lane_positions(self, cells: np.ndarray) -> np.ndarray:
        """(N, lanes, 3) hkl position of every lane of every cell."""
        corners = self.lower_corners(cells)
        return corners[:, None, :] + self.offsets[None, :, :]

    def lane_values(self, cells: np.ndarray, origin: np.ndarray, normal: np.ndarray) -> np.ndarray:
        """Signed plane distance (unnormalised) of every lane of every cell.

        ``normal`` must already be the effective normal.
        """
        return (self.lane_positions(cells) - origin) @ normal

    def sector_values(
        self,
        lower: np.ndarray,
        upper: np.ndarray,
        origin: np.ndarray,
        normal: np.ndarray
    ) -> np.ndarray:
        """Plane equation at the 8 bounding corners of each sector."""
        return (self.sector_corners(lower, upper) - origin) @ normal

    def __repr__(self) -> str:
        return f"{type(self).__name__}(lanes={self.lane_count})"


class CubicCell(CellTemplate):
    """Diamond-cubic cell: 8 lanes at quarter offsets.

    Even lanes form the face-centred sub-lattice, odd lanes the copy
    shifted by (1/4, 1/4, 1/4).
    """

    basis = Basis.CUBIC
    mask_dtype = np.uint8

    def __init__(self):
        x0 = [0, 1, 0, 1, 2, 3, 2, 3]
        y0 = [0, 1, 2, 3, 0, 1, 2, 3]
        z0 = [0, 1, 2, 3, 2, 3, 0, 1]
        self.offsets = np.array([x0, y0, z0], dtype=np.float64).T / 4

    def lower_corners(self, cells: np.ndarray) -> np.ndarray:
        return np.asarray(cells, dtype=np.float64).reshape(-1, 3)

    def sector_corners(self, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        extent = upper - lower
        return lower[:, None, :] + _CORNER_BITS[None, :, :] * extent[:, None, :]

    def effective_normal(self, normal: np.ndarray) -> np.ndarray:
        return np.asarray(normal, dtype=np.float64)

    def to_cartesian(self, hkl: np.ndarray, scale: np.ndarray) -> np.ndarray:
        return hkl * scale


class HexagonalCell(CellTemplate):
    """Lonsdaleite cell: two stacked chair hexagons, 12 lanes.

    Storage uses the orthogonal working basis (h, h + 2k, l). Along x a cell
    spans 3 h; rows along y step by half an h + 2k, and even rows are
    shifted by 1.5 h so hexagons tile the plane without sharing atoms.
    """

    basis = Basis.HEXAGONAL
    mask_dtype = np.uint16

    def __init__(self):
        x0 = [2, 4, 5, 4, 2, 1, 1, 2, 4, 5, 4, 2]
        y0 = [1, 2, 4, 5, 4, 2, 2, 1, 2, 4, 5, 4]
        z0 = [0, 1, 0, 1, 0, 1, 4, 5, 4, 5, 4, 5]
        self.offsets = np.array([x0, y0, z0], dtype=np.float64).T / np.array([3.0, 3.0, 8.0])

    @staticmethod
    def working_to_hkl(points: np.ndarray) -> np.ndarray:
        """(h, h + 2k, l) coordinates to hkl."""
        points = np.asarray(points, dtype=np.float64)
        hkl = np.empty_like(points)
        hkl[..., 0] = points[..., 0] + points[..., 1]
        hkl[..., 1] = 2.0 * points[..., 1]
        hkl[..., 2] = points[..., 2]
        return hkl

    def lower_corners(self, cells: np.ndarray) -> np.ndarray:
        cells = np.asarray(cells, dtype=np.int64).reshape(-1, 3)
        working = np.empty(cells.shape, dtype=np.float64)
        parity = np.where(cells[:, 1] % 2 == 0, 1.5, 0.0)
        working[:, 0] = cells[:, 0] * 3.0 + parity
        working[:, 1] = (cells[:, 1] - 1.0) / 2.0
        working[:, 2] = cells[:, 2]
        return self.working_to_hkl(working)

    def sector_corners(self, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        # Lane offsets in the working basis lie in [0, 1] x [1/6, 5/6] x [0, 5/8].
        box_lower = np.stack([3.0 * lower[:, 0], (lower[:, 1] - 1.0) / 2.0, lower[:, 2]], axis=1)
        box_upper = np.stack([3.0 * upper[:, 0], upper[:, 1] / 2.0, upper[:, 2]], axis=1)
        extent = box_upper - box_lower
        corners = box_lower[:, None, :] + _CORNER_BITS[None, :, :] * extent[:, None, :]
        return self.working_to_hkl(corners)

    def effective_normal(self, normal: np.ndarray) -> np.ndarray:
        # Metric of the hexagonal basis: subtract half of (n_k, n_h) from (n_h, n_k).
        normal = np.asarray(normal, dtype=np.float64)
        return np.array([
            normal[0] - 0.5 * normal[1],
            normal[1] - 0.5 * normal[0],
            normal[2],
        ])

    def to_cartesian(self, hkl: np.ndarray, scale: np.ndarray) -> np.ndarray:
        scaled = hkl * scale
        xyz = np.empty_like(scaled)
        xyz[:, 0] = scaled[:, 0] - 0.5 * scaled[:, 1]
        xyz[:, 1] = _SQRT3_2 * scaled[:, 1]
        xyz[:, 2] = scaled[:, 2]
        return xyz


CUBIC_CELL = CubicCell()
HEXAGONAL_CELL = HexagonalCell()


def template_for(basis: Basis) -> CellTemplate:
    """Cell template of a basis."""
    if basis is Basis.CUBIC:
        return CUBIC_CELL
    if basis is Basis.HEXAGONAL:
        return HEXAGONAL_CELL
    raise ValueError(f"Unknown basis: {basis!r}")
