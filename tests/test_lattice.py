"""
Test suite for the Lattice entry point.

Covers the end-to-end construction scenarios: a plain carbon block, a block
cut in half, and a boron nitride checkerboard, on both bases.
"""

import numpy as np
import pytest
from scipy.spatial import cKDTree

from crystal_lattice import (
    Basis,
    Checkerboard,
    ConstantType,
    Element,
    Elemental,
    EntityType,
    GridSettings,
    Lattice,
    MissingBindingError,
    UnsupportedGeometryError,
    constant,
)

CARBON = Elemental(Element.CARBON)
BORON_NITRIDE = Checkerboard(Element.BORON, Element.NITROGEN)


def block(material, size):
    """Build function for an uncarved cubic block."""

    def build(ctx, h, k, l):
        ctx.bounds(size[0] * h + size[1] * k + size[2] * l)
        ctx.material(material)

    return build


def half_block(ctx, h, k, l):
    ctx.bounds(4 * h + 4 * k + 4 * l)
    ctx.material(CARBON)
    with ctx.volume():
        ctx.origin(2 * h)
        ctx.plane(h)
        ctx.replace(EntityType.EMPTY)


# =============================================================================
# Scenario Tests
# =============================================================================

class TestCarbonBlock:
    """Test an uncarved 4x4x4 diamond block."""

    @pytest.fixture(scope="class")
    def lattice(self):
        return Lattice(Basis.CUBIC, block(CARBON, (4, 4, 4)))

    def test_atom_count(self, lattice):
        """Test the closed-box atom count."""
        assert len(lattice) == 621
        assert len(lattice.entities) == 621

    def test_half_open_count(self, lattice):
        """Test eight atoms per requested cell in the half-open box."""
        xyz = lattice.atoms[:, :3] / 0.3567
        assert int(np.all(xyz < 4 - 1e-9, axis=1).sum()) == 4 * 4 * 4 * 8

    def test_all_carbon(self, lattice):
        """Test that every entity is a carbon atom."""
        assert lattice.element_counts() == {Element.CARBON: 621}
        assert all(entity.element is Element.CARBON for entity in lattice.entities)

    def test_extent(self, lattice):
        """Test that positions span the bounds box."""
        xyz = lattice.atoms[:, :3]
        np.testing.assert_allclose(xyz.min(axis=0), 0.0, atol=1e-12)
        np.testing.assert_allclose(xyz.max(axis=0), 4 * 0.3567)

    def test_properties(self, lattice):
        """Test basis, material and dimension bookkeeping."""
        assert lattice.basis is Basis.CUBIC
        assert lattice.material == CARBON
        np.testing.assert_array_equal(lattice.bounds, [4, 4, 4])
        assert lattice.dimensions == (8, 5, 5)

    def test_atoms_read_only(self, lattice):
        """Test that the atom array cannot be modified."""
        with pytest.raises(ValueError):
            lattice.atoms[0, 0] = 1.0

    def test_entities_cached(self, lattice):
        """Test that entities are computed once."""
        assert lattice.entities is lattice.entities


class TestHalfBlock:
    """Test a block cut by one cell-aligned plane."""

    def test_cut(self):
        """Test that atoms beyond x = 2a are removed and the plane itself is kept."""
        lattice = Lattice(Basis.CUBIC, half_block)
        x = lattice.atoms[:, 0] / 0.3567
        assert len(lattice) == 331
        assert np.all(x <= 2 + 1e-9)
        assert np.any(np.isclose(x, 2.0))

    def test_determinism(self):
        """Test that repeated construction is byte-identical."""
        first = Lattice(Basis.CUBIC, half_block)
        second = Lattice(Basis.CUBIC, half_block)
        assert first.atoms.tobytes() == second.atoms.tobytes()
        assert first.entities == second.entities

    @pytest.mark.parametrize("settings", [
        GridSettings(sector_size=4, subsector_size=4),
        GridSettings(sector_size=8, subsector_size=2),
        GridSettings(lane_granularity=1),
    ])
    def test_settings_do_not_change_result(self, settings):
        """Test that tuning parameters leave the atoms unchanged."""
        reference = Lattice(Basis.CUBIC, half_block)
        tuned = Lattice(Basis.CUBIC, half_block, settings=settings)
        np.testing.assert_array_equal(np.unique(tuned.atoms, axis=0),
                                      np.unique(reference.atoms, axis=0))


class TestBoronNitride:
    """Test a 2x2x2 checkerboard block."""

    @pytest.fixture(scope="class")
    def lattice(self):
        return Lattice(Basis.CUBIC, block(BORON_NITRIDE, (2, 2, 2)))

    def test_half_open_composition(self, lattice):
        """Test equal boron and nitrogen inside the half-open box."""
        xyz = lattice.atoms[:, :3] / 0.3615
        inside = np.all(xyz < 2 - 1e-9, axis=1)
        numbers = lattice.atoms[inside, 3]
        assert len(numbers) == 64
        assert int((numbers == 5).sum()) == 32
        assert int((numbers == 7).sum()) == 32

    def test_closed_composition(self, lattice):
        """Test that the face-centred boron sub-lattice keeps its boundary atoms."""
        assert lattice.element_counts() == {Element.BORON: 63, Element.NITROGEN: 32}

    def test_to_dict(self, lattice):
        """Test conversion to plain values."""
        data = lattice.to_dict()
        assert data['basis'] == 'cubic'
        assert data['material'] == ['B', 'N']
        assert data['bounds'] == [2.0, 2.0, 2.0]
        assert len(data['positions']) == len(data['atomic_numbers']) == 95
        assert set(data['atomic_numbers']) == {5, 7}


# =============================================================================
# Hexagonal Tests
# =============================================================================

class TestHexagonalLattice:
    """Test lonsdaleite construction."""

    @staticmethod
    def build(ctx, h, k, l):
        ctx.bounds(4 * h + 3 * (h + 2 * k) + 2 * l)
        ctx.material(CARBON)

    def test_construction(self):
        """Test that a hexagonal block has diamond bond lengths."""
        lattice = Lattice(Basis.HEXAGONAL, self.build)
        assert lattice.basis is Basis.HEXAGONAL
        np.testing.assert_array_equal(lattice.bounds, [7, 6, 2])
        points = lattice.atoms[:, :3]
        distances, _ = cKDTree(points).query(points, k=2)
        bond = constant(ConstantType.SQUARE, CARBON) * np.sqrt(3) / 4
        assert distances[:, 1].min() == pytest.approx(bond)

    def test_carved_hexagonal(self):
        """Test carving a hexagonal block with a basal plane."""

        def build(ctx, h, k, l):
            self.build(ctx, h, k, l)
            with ctx.volume():
                ctx.origin(l)
                ctx.plane(l)
                ctx.replace(EntityType.EMPTY)

        full = Lattice(Basis.HEXAGONAL, self.build)
        carved = Lattice(Basis.HEXAGONAL, build)
        height = constant(ConstantType.PRISM, CARBON)
        assert 0 < len(carved) < len(full)
        assert np.all(carved.atoms[:, 2] <= height + 1e-9)
        expected = int((full.atoms[:, 2] <= height + 1e-9).sum())
        assert len(carved) == expected

    def test_hexagonal_gold(self):
        """Test that hexagonal gold is rejected."""

        def build(ctx, h, k, l):
            ctx.bounds(3 * h + 2 * k + l)
            ctx.material(Elemental(Element.GOLD))

        with pytest.raises(UnsupportedGeometryError):
            Lattice(Basis.HEXAGONAL, build)


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test failures surfacing from the build callable."""

    def test_missing_material(self):
        """Test that a description without material fails."""

        def build(ctx, h, k, l):
            ctx.bounds(h + k + l)

        with pytest.raises(MissingBindingError):
            Lattice(Basis.CUBIC, build)

    def test_build_exception_propagates(self):
        """Test that errors raised by the caller reach the caller."""

        def build(ctx, h, k, l):
            raise KeyError("description")

        with pytest.raises(KeyError):
            Lattice(Basis.CUBIC, build)
