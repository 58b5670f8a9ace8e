"""
Lattice materials and their lattice constants.

A material is either a single element on every lattice site or a
checkerboard of two elements on the two interpenetrating sub-lattices.
The constant table maps each recognized material to the edge of its cubic
(zincblende / diamond) unit cell in nanometres; the hexagonal constants
are derived from it.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from .elements import Element
from .errors import UnrecognizedMaterialError, UnsupportedGeometryError


@dataclass(frozen=True)
class Elemental:
    """Monoatomic lattice."""

    element: Element

    def __post_init__(self):
        object.__setattr__(self, 'element', Element(self.element))

    @property
    def elements(self) -> tuple[Element, Element]:
        return (self.element, self.element)


@dataclass(frozen=True)
class Checkerboard:
    """Two-element lattice; ``first`` occupies the face-centred sub-lattice."""

    first: Element
    second: Element

    def __post_init__(self):
        object.__setattr__(self, 'first', Element(self.first))
        object.__setattr__(self, 'second', Element(self.second))

    @property
    def elements(self) -> tuple[Element, Element]:
        return (self.first, self.second)

    @property
    def key(self) -> frozenset:
        return frozenset((self.first, self.second))


MaterialType = Elemental | Checkerboard


class ConstantType(Enum):
    """Which lattice constant to report.

    SQUARE: edge of the cubic unit cell.
    HEXAGON: side of the hexagonal prism base.
    PRISM: height of the hexagonal prism.
    """

    HEXAGON = 'hexagon'
    PRISM = 'prism'
    SQUARE = 'square'

    @property
    def multiplier(self) -> float:
        return _MULTIPLIERS[self]


_MULTIPLIERS = {
    ConstantType.HEXAGON: float(np.sqrt(1.0 / 2.0)),
    ConstantType.PRISM: float(np.sqrt(4.0 / 3.0)),
    ConstantType.SQUARE: 1.0,
}

# Cubic lattice constants in nm
ELEMENTAL_SPACINGS: dict[Element, float] = {
    Element.CARBON: 0.3567,
    Element.SILICON: 0.5431,
    Element.GERMANIUM: 0.5658,
    Element.GOLD: 0.4078,
}

CHECKERBOARD_SPACINGS: dict[frozenset, float] = {
    frozenset((Element.BORON, Element.NITROGEN)): 0.3615,
    frozenset((Element.BORON, Element.PHOSPHORUS)): 0.4538,
    frozenset((Element.BORON, Element.ARSENIC)): 0.4778,
    frozenset((Element.CARBON, Element.SILICON)): 0.4360,
    frozenset((Element.CARBON, Element.GERMANIUM)): 0.4523,
    frozenset((Element.NITROGEN, Element.ALUMINUM)): 0.4358,
    frozenset((Element.NITROGEN, Element.GALLIUM)): 0.4498,
    frozenset((Element.ALUMINUM, Element.PHOSPHORUS)): 0.5464,
    frozenset((Element.ALUMINUM, Element.ARSENIC)): 0.5660,
    frozenset((Element.PHOSPHORUS, Element.GALLIUM)): 0.5450,
    frozenset((Element.GALLIUM, Element.ARSENIC)): 0.5653,
}


def validate_material(material) -> MaterialType:
    """Check that a material appears in the constant table.

    Args:
        material: ``Elemental`` or ``Checkerboard`` value

    Returns:
        The material, unchanged

    Raises:
        UnrecognizedMaterialError: For any other combination
    """
    if isinstance(material, Elemental):
        if material.element in ELEMENTAL_SPACINGS:
            return material
    elif isinstance(material, Checkerboard):
        if material.key in CHECKERBOARD_SPACINGS:
            return material
    raise UnrecognizedMaterialError(f"Unrecognized material type: {material!r}")


def cubic_spacing(material: MaterialType) -> float:
    """Edge of the cubic unit cell of a material, in nm."""
    validate_material(material)
    if isinstance(material, Elemental):
        return ELEMENTAL_SPACINGS[material.element]
    return CHECKERBOARD_SPACINGS[material.key]


def constant(kind: ConstantType, material: MaterialType) -> float:
    """Lattice constant of a material in nanometres.

    Args:
        kind: Which edge of the unit cell to report
        material: Elemental or checkerboard material

    Returns:
        Length in nm

    Raises:
        UnrecognizedMaterialError: Material not in the table
        UnsupportedGeometryError: Gold asked for a hexagonal constant
    """
    spacing = cubic_spacing(material)
    if (
        isinstance(material, Elemental)
        and material.element is Element.GOLD
        and kind is not ConstantType.SQUARE
    ):
        raise UnsupportedGeometryError("Hexagonal gold is unsupported.")
    return spacing * kind.multiplier
