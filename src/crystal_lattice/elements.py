"""
Chemical elements and the packed entity-type code stored in grid lanes.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class Element(IntEnum):
    """Atomic species supported by the construction engine.

    The value of each member is its atomic number.
    """

    HYDROGEN = 1

    BORON = 5
    CARBON = 6
    NITROGEN = 7
    OXYGEN = 8
    FLUORINE = 9

    ALUMINUM = 13
    SILICON = 14
    PHOSPHORUS = 15
    SULFUR = 16
    CHLORINE = 17

    GALLIUM = 31
    GERMANIUM = 32
    ARSENIC = 33
    SELENIUM = 34
    BROMINE = 35

    TIN = 50
    GOLD = 79
    LEAD = 82

    @property
    def atomic_number(self) -> int:
        return int(self)

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Element':
        """Look up an element by its chemical symbol (case-insensitive).

        Raises:
            ValueError: If the symbol is not a supported element.
        """
        key = symbol.strip().lower()
        for element, candidate in _SYMBOLS.items():
            if candidate.lower() == key:
                return element
        raise ValueError(f"Unknown element symbol: {symbol!r}")


_SYMBOLS = {
    Element.HYDROGEN: 'H',
    Element.BORON: 'B',
    Element.CARBON: 'C',
    Element.NITROGEN: 'N',
    Element.OXYGEN: 'O',
    Element.FLUORINE: 'F',
    Element.ALUMINUM: 'Al',
    Element.SILICON: 'Si',
    Element.PHOSPHORUS: 'P',
    Element.SULFUR: 'S',
    Element.CHLORINE: 'Cl',
    Element.GALLIUM: 'Ga',
    Element.GERMANIUM: 'Ge',
    Element.ARSENIC: 'As',
    Element.SELENIUM: 'Se',
    Element.BROMINE: 'Br',
    Element.TIN: 'Sn',
    Element.GOLD: 'Au',
    Element.LEAD: 'Pb',
}


class BondKind(Enum):
    """Bond kinds. Only sigma bonds exist at this layer."""

    SIGMA = 'sigma'


@dataclass(frozen=True)
class EntityType:
    """Tagged union of atom, bond, or empty.

    Construct with ``EntityType.atom(element)``, ``EntityType.bond(kind)``
    or use ``EntityType.EMPTY``. At most one of ``element`` and ``bond`` is
    set; neither means empty.

    Lanes store the packed form: one signed byte where 0 is empty and a
    positive value is an atomic number. Negative codes are reserved for the
    bond encoding of the topology layer and are never produced here.
    """

    element: Element | None = None
    bond_kind: BondKind | None = None

    def __post_init__(self):
        if self.element is not None and self.bond_kind is not None:
            raise ValueError("An entity type cannot be both an atom and a bond")

    @classmethod
    def atom(cls, element: Element) -> 'EntityType':
        return cls(element=Element(element))

    @classmethod
    def bond(cls, kind: BondKind = BondKind.SIGMA) -> 'EntityType':
        return cls(bond_kind=kind)

    @property
    def is_atom(self) -> bool:
        return self.element is not None

    @property
    def is_bond(self) -> bool:
        return self.bond_kind is not None

    @property
    def is_empty(self) -> bool:
        return self.element is None and self.bond_kind is None

    def pack(self) -> int:
        """Encode as a signed lane byte.

        Raises:
            ValueError: For bonds, which have no lane encoding here.
        """
        if self.element is not None:
            return int(self.element)
        if self.bond_kind is not None:
            raise ValueError("Bond entity types have no packed lane encoding")
        return 0

    @classmethod
    def unpack(cls, code: int) -> 'EntityType':
        """Decode a signed lane byte produced by ``pack``.

        Raises:
            ValueError: For negative codes or unknown atomic numbers.
        """
        code = int(code)
        if code == 0:
            return cls.EMPTY
        if code < 0:
            raise ValueError(f"Lane code {code} is reserved for bonds")
        try:
            element = Element(code)
        except ValueError:
            raise ValueError(f"Lane code {code} is not a supported element") from None
        return cls(element=element)

    def __repr__(self) -> str:
        if self.element is not None:
            return f"EntityType.atom({self.element.name.lower()})"
        if self.bond_kind is not None:
            return f"EntityType.bond({self.bond_kind.value})"
        return "EntityType.EMPTY"


EntityType.EMPTY = EntityType()


def as_entity_type(value: 'EntityType | Element | int') -> EntityType:
    """Coerce an element, atomic number or entity type to ``EntityType``."""
    if isinstance(value, EntityType):
        return value
    if isinstance(value, int):
        return EntityType.unpack(value)
    raise TypeError(f"Cannot interpret {value!r} as an entity type")
