"""
Crystal Lattice - Volumetric Lattice Construction Engine.

Builds diamond-cubic and lonsdaleite lattices by carving a block of unit
cells with half-space planes, grouped into concave and convex volumes.

Example:
    >>> from crystal_lattice import Basis, Elemental, Element, EntityType, Lattice
    >>>
    >>> def build(ctx, h, k, l):
    ...     ctx.bounds(4 * h + 4 * k + 4 * l)
    ...     ctx.material(Elemental(Element.CARBON))
    ...     with ctx.volume():
    ...         ctx.origin(2 * h)
    ...         ctx.plane(h)
    ...         ctx.replace(EntityType.EMPTY)
    >>> lattice = Lattice(Basis.CUBIC, build)
    >>> print(len(lattice))
    331
"""

__version__ = "1.0.0"
__author__ = "Fabian Schuh"
__email__ = "fabian@gemmology.dev"

# Entry point
from .lattice import Lattice

# Construction context
from .context import ConstructionContext, ScopeKind

# Data classes
from .elements import BondKind, Element, EntityType
from .models import Basis, Cubic, Entity, Hexagonal, Plane

# Materials and constants
from .materials import Checkerboard, ConstantType, Elemental, constant

# Grids and masks
from .grid import CubicGrid, HexagonalGrid, LatticeGrid, create_grid
from .masks import Mask, compile_mask, compile_mask_naive

# Configuration
from .config import DEFAULT_SETTINGS, GridSettings

# Errors
from .errors import (
    ConfigurationError,
    DuplicateBindingError,
    InvalidGeometryError,
    MaskSizeError,
    MissingBindingError,
    ReentrancyError,
    ScopeError,
    UnrecognizedMaterialError,
    UnsupportedGeometryError,
)

__all__ = [
    # Version
    "__version__",
    # Entry point
    "Lattice",
    "ConstructionContext",
    "ScopeKind",
    # Data classes
    "Basis",
    "Cubic",
    "Hexagonal",
    "Element",
    "EntityType",
    "BondKind",
    "Entity",
    "Plane",
    # Materials
    "Elemental",
    "Checkerboard",
    "ConstantType",
    "constant",
    # Grids and masks
    "LatticeGrid",
    "CubicGrid",
    "HexagonalGrid",
    "create_grid",
    "Mask",
    "compile_mask",
    "compile_mask_naive",
    # Configuration
    "GridSettings",
    "DEFAULT_SETTINGS",
    # Errors
    "ConfigurationError",
    "DuplicateBindingError",
    "ScopeError",
    "MissingBindingError",
    "InvalidGeometryError",
    "UnrecognizedMaterialError",
    "UnsupportedGeometryError",
    "MaskSizeError",
    "ReentrancyError",
]
