"""
Test suite for materials, lattice constants and settings.
"""

import numpy as np
import pytest

from crystal_lattice import (
    Checkerboard,
    ConstantType,
    Element,
    Elemental,
    GridSettings,
    UnrecognizedMaterialError,
    UnsupportedGeometryError,
    constant,
)
from crystal_lattice.materials import cubic_spacing, validate_material


# =============================================================================
# Material Tests
# =============================================================================

class TestMaterials:
    """Test material value types."""

    def test_elemental_coerces_atomic_number(self):
        """Test that an atomic number becomes an Element."""
        material = Elemental(6)
        assert material.element is Element.CARBON
        assert material.elements == (Element.CARBON, Element.CARBON)

    def test_checkerboard_order(self):
        """Test that the first element is kept first."""
        material = Checkerboard(Element.GALLIUM, Element.ARSENIC)
        assert material.elements == (Element.GALLIUM, Element.ARSENIC)

    def test_materials_are_hashable(self):
        """Test that equal materials compare and hash equal."""
        assert Elemental(Element.SILICON) == Elemental(14)
        assert len({Elemental(Element.SILICON), Elemental(14)}) == 1

    @pytest.mark.parametrize("material", [
        Elemental(Element.CARBON),
        Elemental(Element.SILICON),
        Elemental(Element.GERMANIUM),
        Elemental(Element.GOLD),
        Checkerboard(Element.BORON, Element.NITROGEN),
        Checkerboard(Element.NITROGEN, Element.BORON),
        Checkerboard(Element.GALLIUM, Element.ARSENIC),
        Checkerboard(Element.CARBON, Element.SILICON),
    ])
    def test_recognized(self, material):
        """Test that table materials validate in either element order."""
        assert validate_material(material) is material

    @pytest.mark.parametrize("material", [
        Elemental(Element.HYDROGEN),
        Elemental(Element.LEAD),
        Checkerboard(Element.CARBON, Element.GOLD),
        Checkerboard(Element.CARBON, Element.CARBON),
        "carbon",
    ])
    def test_unrecognized(self, material):
        """Test that unknown materials are rejected."""
        with pytest.raises(UnrecognizedMaterialError):
            validate_material(material)


# =============================================================================
# Lattice Constant Tests
# =============================================================================

class TestConstants:
    """Test lattice constant queries."""

    @pytest.mark.parametrize("material,spacing", [
        (Elemental(Element.CARBON), 0.3567),
        (Elemental(Element.SILICON), 0.5431),
        (Elemental(Element.GOLD), 0.4078),
        (Checkerboard(Element.BORON, Element.NITROGEN), 0.3615),
        (Checkerboard(Element.GALLIUM, Element.ARSENIC), 0.5653),
    ])
    def test_square(self, material, spacing):
        """Test cubic cell edges."""
        assert constant(ConstantType.SQUARE, material) == pytest.approx(spacing)
        assert cubic_spacing(material) == pytest.approx(spacing)

    def test_hexagonal_constants(self):
        """Test that hexagonal constants derive from the cubic edge."""
        carbon = Elemental(Element.CARBON)
        assert constant(ConstantType.HEXAGON, carbon) == pytest.approx(0.3567 * np.sqrt(0.5))
        assert constant(ConstantType.PRISM, carbon) == pytest.approx(0.3567 * np.sqrt(4 / 3))

    def test_hexagonal_bond_matches_cubic_bond(self):
        """Test that the prism's vertical bond equals the diamond bond."""
        carbon = Elemental(Element.CARBON)
        square = constant(ConstantType.SQUARE, carbon)
        prism = constant(ConstantType.PRISM, carbon)
        assert prism * 3 / 8 == pytest.approx(square * np.sqrt(3) / 4)

    @pytest.mark.parametrize("kind", [ConstantType.HEXAGON, ConstantType.PRISM])
    def test_hexagonal_gold(self, kind):
        """Test that gold has no hexagonal constant."""
        with pytest.raises(UnsupportedGeometryError, match="Hexagonal gold"):
            constant(kind, Elemental(Element.GOLD))

    def test_unrecognized(self):
        """Test constant lookup of an unknown material."""
        with pytest.raises(UnrecognizedMaterialError):
            constant(ConstantType.SQUARE, Elemental(Element.OXYGEN))


# =============================================================================
# Settings Tests
# =============================================================================

class TestGridSettings:
    """Test GridSettings validation."""

    def test_defaults(self):
        """Test default sector hierarchy."""
        settings = GridSettings()
        assert settings.sector_levels == (4, 2)
        assert settings.lane_granularity == 4
        assert settings.bounds_epsilon == pytest.approx(0.001)

    def test_single_level(self):
        """Test that equal sizes collapse to one level."""
        assert GridSettings(sector_size=4, subsector_size=4).sector_levels == (4,)

    @pytest.mark.parametrize("kwargs", [
        {'sector_size': 0},
        {'subsector_size': 0},
        {'sector_size': 4, 'subsector_size': 3},
        {'lane_granularity': 0},
        {'bounds_epsilon': -0.1},
        {'bounds_epsilon': 1.0},
    ])
    def test_invalid(self, kwargs):
        """Test that inconsistent settings are rejected."""
        with pytest.raises(ValueError):
            GridSettings(**kwargs)
