"""
Construction context: the scope stack behind a lattice description.

A ``ConstructionContext`` holds everything one lattice construction needs:
the bound basis, material and bounds, a stack of open scopes, and the grid
being carved. Scopes nest as::

    Lattice -> Volume*
    Volume  -> (Concave | Convex | Volume)*
    Concave / Convex -> (Concave | Convex)*

Planes declared in a scope are folded into that scope's running mask.
``Concave`` intersects everything declared directly in it; ``Convex`` and
``Volume`` take the union. When a ``Concave``/``Convex`` scope closes, its
mask is folded into the parent by the parent's rule and its planes are
handed to the parent. When a ``Volume`` closes, its planes and mask are
dropped; the carving it did stays in the grid.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .config import DEFAULT_SETTINGS, GridSettings
from .elements import Element, EntityType, as_entity_type
from .errors import (
    ConfigurationError,
    DuplicateBindingError,
    MissingBindingError,
    ReentrancyError,
    ScopeError,
)
from .grid import LatticeGrid, create_grid, validate_bounds
from .masks import Mask
from .materials import MaterialType, validate_material
from .models import Basis, Plane, as_vector

logger = logging.getLogger(__name__)


class ScopeKind(Enum):
    LATTICE = 'Lattice'
    VOLUME = 'Volume'
    CONCAVE = 'Concave'
    CONVEX = 'Convex'


_CARVING = (ScopeKind.VOLUME, ScopeKind.CONCAVE, ScopeKind.CONVEX)

# Scope kinds that may be open when each operation is issued
_PERMITTED = {
    'bounds': (ScopeKind.LATTICE,),
    'material': (ScopeKind.LATTICE,),
    ScopeKind.VOLUME: (ScopeKind.LATTICE, ScopeKind.VOLUME),
    ScopeKind.CONCAVE: _CARVING,
    ScopeKind.CONVEX: _CARVING,
    'origin': _CARVING,
    'plane': _CARVING,
    'replace': _CARVING,
}


@dataclass
class Scope:
    """One open scope: its translations, planes and running mask."""

    kind: ScopeKind
    origins: list[np.ndarray] = field(default_factory=list)
    planes: list[Plane] = field(default_factory=list)
    mask: Mask | None = None

    def combine(self, mask: Mask):
        """Fold a mask in: intersection for Concave, union otherwise."""
        if self.mask is None:
            self.mask = mask.copy()
        elif self.kind is ScopeKind.CONCAVE:
            self.mask &= mask
        else:
            self.mask |= mask


class _State(Enum):
    ACTIVE = 'active'
    FINISHED = 'finished'
    ABORTED = 'aborted'


class ConstructionContext:
    """Mutable builder state for one lattice.

    Args:
        basis: Unit-cell family of the lattice
        settings: Grid and mask compiler settings

    Example:
        >>> ctx = ConstructionContext(Basis.CUBIC)
        >>> h, k, l = ctx.basis_vectors
        >>> ctx.bounds(4 * h + 4 * k + 4 * l)
        >>> ctx.material(Elemental(Element.CARBON))
        >>> with ctx.volume():
        ...     ctx.origin(2 * h)
        ...     ctx.plane(h)
        ...     ctx.replace(EntityType.EMPTY)
        >>> grid = ctx.finish()
    """

    def __init__(self, basis: Basis, settings: GridSettings = DEFAULT_SETTINGS):
        if not isinstance(basis, Basis):
            raise ConfigurationError(f"Invalid basis type: {basis!r}")
        self.basis = basis
        self.settings = settings
        self._bounds: np.ndarray | None = None
        self._material: MaterialType | None = None
        self._grid: LatticeGrid | None = None
        self._stack: list[Scope] = [Scope(ScopeKind.LATTICE)]
        self._state = _State.ACTIVE

    # -- introspection --------------------------------------------------

    @property
    def basis_vectors(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.basis.unit_vectors()

    @property
    def bound_bounds(self) -> np.ndarray | None:
        return None if self._bounds is None else self._bounds.copy()

    @property
    def bound_material(self) -> MaterialType | None:
        return self._material

    @property
    def depth(self) -> int:
        """Number of open scopes, including the lattice scope."""
        return len(self._stack)

    @property
    def scope_kinds(self) -> tuple[ScopeKind, ...]:
        return tuple(scope.kind for scope in self._stack)

    @property
    def current_origin(self) -> np.ndarray:
        """Sum of every translation still in effect."""
        total = np.zeros(3)
        for scope in self._stack:
            for origin in scope.origins:
                total = total + origin
        return total

    @property
    def current_planes(self) -> tuple[Plane, ...]:
        """Planes accumulated by the innermost scope."""
        return tuple(self._stack[-1].planes)

    @property
    def current_mask(self) -> Mask | None:
        mask = self._stack[-1].mask
        return None if mask is None else mask.copy()

    @property
    def grid(self) -> LatticeGrid | None:
        return self._grid

    @property
    def is_active(self) -> bool:
        return self._state is _State.ACTIVE

    # -- checks ---------------------------------------------------------

    def _require(self, operation):
        if self._state is not _State.ACTIVE:
            raise ReentrancyError(
                f"Construction context is {self._state.value}; start a new one"
            )
        top = self._stack[-1].kind
        if top not in _PERMITTED[operation]:
            name = operation.value if isinstance(operation, ScopeKind) else operation.capitalize()
            self._abort()
            raise ScopeError(f"{name} cannot be called in {top.value}.")

    def _abort(self):
        self._state = _State.ABORTED
        self._grid = None

    def _fail(self, error: ConfigurationError):
        self._abort()
        raise error

    def _touch_grid(self) -> LatticeGrid:
        if self._grid is None:
            if self._bounds is None:
                self._fail(MissingBindingError("Bounds must be declared before carving"))
            if self._material is None:
                self._fail(MissingBindingError("Material must be declared before carving"))
            try:
                self._grid = create_grid(self.basis, self._bounds, self._material, self.settings)
            except ConfigurationError:
                self._abort()
                raise
        return self._grid

    # -- bindings -------------------------------------------------------

    def bounds(self, vector):
        """Bind the lattice extent (whole cells, in hkl)."""
        self._require('bounds')
        if self._bounds is not None:
            self._fail(DuplicateBindingError("Already set bounds."))
        try:
            self._bounds = validate_bounds(vector)
        except ConfigurationError:
            self._abort()
            raise

    def material(self, material: MaterialType):
        """Bind the material filling the lattice."""
        self._require('material')
        if self._material is not None:
            self._fail(DuplicateBindingError("Already set material."))
        try:
            self._material = validate_material(material)
        except ConfigurationError:
            self._abort()
            raise

    # -- scopes ---------------------------------------------------------

    def _push(self, kind: ScopeKind):
        self._require(kind)
        if kind is ScopeKind.VOLUME:
            self._touch_grid()
        self._stack.append(Scope(kind))
        logger.debug("Entered %s at depth %d", kind.value, len(self._stack))

    def _pop(self, kind: ScopeKind):
        if self._state is not _State.ACTIVE:
            raise ReentrancyError("Scope closed after the construction context ended")
        scope = self._stack.pop()
        if scope.kind is not kind:
            self._fail(ScopeError(f"Unexpected scope was popped: {scope.kind.value}"))
        parent = self._stack[-1]
        if kind is not ScopeKind.VOLUME:
            parent.planes.extend(scope.planes)
            if scope.mask is not None:
                parent.combine(scope.mask)
        logger.debug("Left %s with %d planes", kind.value, len(scope.planes))

    @contextmanager
    def _scope(self, kind: ScopeKind):
        self._push(kind)
        try:
            yield self
        except BaseException:
            if self._state is _State.ACTIVE:
                self._abort()
            raise
        self._pop(kind)

    def volume(self):
        """Open a carving scope whose planes vanish when it closes."""
        return self._scope(ScopeKind.VOLUME)

    def concave(self):
        """Open a scope selecting where every plane inside agrees."""
        return self._scope(ScopeKind.CONCAVE)

    def convex(self):
        """Open a scope selecting where any plane inside agrees."""
        return self._scope(ScopeKind.CONVEX)

    # -- carving --------------------------------------------------------

    def origin(self, vector):
        """Translate subsequent plane origins until the current scope closes."""
        self._require('origin')
        try:
            translation = as_vector(vector, 'origin')
        except ConfigurationError:
            self._abort()
            raise
        self._stack[-1].origins.append(translation)

    def plane(self, normal) -> Plane:
        """Declare a plane through the current origin."""
        self._require('plane')
        try:
            plane = Plane.create(self.current_origin, normal)
        except ConfigurationError:
            self._abort()
            raise
        grid = self._touch_grid()
        scope = self._stack[-1]
        scope.planes.append(plane)
        scope.combine(grid.mask(plane.origin, plane.normal))
        return plane

    def replace(self, entity_type: EntityType | Element):
        """Retype the occupied lanes selected by the innermost scope."""
        self._require('replace')
        try:
            entity_type = as_entity_type(entity_type)
            entity_type.pack()
        except (TypeError, ValueError) as error:
            self._fail(ConfigurationError(f"Cannot replace with {entity_type!r}: {error}"))
        mask = self._stack[-1].mask
        if mask is None:
            logger.debug("Replace with no planes in scope selects nothing")
            return
        self._touch_grid().replace(entity_type, mask)

    # -- lifecycle ------------------------------------------------------

    def finish(self) -> LatticeGrid:
        """End construction and hand over the grid.

        Raises:
            ReentrancyError: If the context already ended or scopes are open
            MissingBindingError: If bounds or material were never declared
        """
        if self._state is not _State.ACTIVE:
            raise ReentrancyError(
                f"Construction context is {self._state.value}; start a new one"
            )
        if len(self._stack) != 1:
            kinds = ', '.join(kind.value for kind in self.scope_kinds[1:])
            self._fail(ReentrancyError(f"Finished while scopes are still open: {kinds}"))
        grid = self._touch_grid()
        self._grid = None
        self._stack = []
        self._state = _State.FINISHED
        return grid
