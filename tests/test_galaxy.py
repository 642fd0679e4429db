"""
Unit tests for the galaxy aggregate grid.

Run with: python -m pytest tests/test_galaxy.py -v
"""

import random

import pytest

from supertrek.coordinates import QuadrantCoordinate, SectorCoordinate
from supertrek.entities import Planet, PlanetClass
from supertrek.galaxy import (
    SUPERNOVA_MARKER,
    Galaxy,
    decode_quadrant,
    encode_quadrant,
)


# Fixtures

@pytest.fixture
def galaxy() -> Galaxy:
    return Galaxy()


@pytest.fixture
def quad() -> QuadrantCoordinate:
    return QuadrantCoordinate(3, 6)


class TestEncoding:
    """Tests for the packed quadrant encoding."""

    def test_every_valid_value_round_trips(self):
        for value in range(SUPERNOVA_MARKER):
            assert encode_quadrant(*decode_quadrant(value)) == value

    def test_components(self):
        assert decode_quadrant(725) == (7, 2, 5)
        assert encode_quadrant(1, 0, 9) == 109

    def test_out_of_range_component_rejected(self):
        with pytest.raises(ValueError):
            encode_quadrant(10, 0, 0)
        with pytest.raises(ValueError):
            encode_quadrant(0, -1, 0)

    def test_supernova_decodes_empty(self):
        assert decode_quadrant(SUPERNOVA_MARKER) == (0, 0, 0)


class TestCounts:
    """Tests for aggregate count adjustments."""

    def test_add_and_remove_hostile(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, encode_quadrant(2, 1, 4))
        assert galaxy.add_hostile(quad)
        assert galaxy.hostile_count(quad) == 3
        assert galaxy.remove_hostile(quad)
        assert galaxy.decode(quad) == (2, 1, 4)

    def test_hostiles_capped_at_nine(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, encode_quadrant(9, 0, 0))
        assert not galaxy.add_hostile(quad)
        assert galaxy.hostile_count(quad) == 9

    def test_remove_hostile_floors_at_zero(self, galaxy, quad):
        assert not galaxy.remove_hostile(quad)
        assert galaxy.get_quadrant_data(quad) == 0

    def test_remove_hostile_ignores_supernova(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, SUPERNOVA_MARKER)
        assert not galaxy.remove_hostile(quad)
        assert galaxy.get_quadrant_data(quad) == SUPERNOVA_MARKER

    def test_stars_capped_at_nine(self, galaxy, quad):
        for _ in range(9):
            assert galaxy.add_star(quad)
        assert not galaxy.add_star(quad)
        galaxy.remove_star(quad)
        assert galaxy.star_count(quad) == 8

    def test_remove_starbase_updates_list(self, galaxy, quad):
        galaxy.starbase_locations.append(quad)
        galaxy.add_starbase(quad)
        galaxy.remove_starbase(quad)
        assert galaxy.starbase_count(quad) == 0
        assert quad not in galaxy.starbase_locations

    def test_totals_skip_supernova_quadrants(self, galaxy):
        galaxy.set_quadrant_data(QuadrantCoordinate(1, 1), encode_quadrant(2, 1, 3))
        galaxy.set_quadrant_data(QuadrantCoordinate(8, 8), encode_quadrant(1, 0, 5))
        galaxy.set_quadrant_data(QuadrantCoordinate(4, 4), SUPERNOVA_MARKER)
        assert galaxy.total_hostiles == 3
        assert galaxy.total_starbases == 1
        assert galaxy.total_stars == 8

    def test_invalid_coordinate_reads_zero(self, galaxy):
        assert galaxy.get_quadrant_data(QuadrantCoordinate.INVALID) == 0


class TestChart:
    """Tests for the player's chart."""

    def test_uncharted_is_zero(self, galaxy, quad):
        assert not galaxy.is_charted(quad)
        assert galaxy.get_chart_data(quad) == 0

    def test_chart_offset(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, 0)
        galaxy.update_chart(quad)
        assert galaxy.is_charted(quad)
        assert galaxy.get_chart_data(quad) == 1

    def test_chart_is_a_copy(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, encode_quadrant(1, 0, 2))
        galaxy.update_chart(quad)
        galaxy.add_hostile(quad)
        assert galaxy.get_chart_data(quad) == 103


class TestSupernova:
    """Tests for quadrant destruction."""

    def test_supernova_wipes_quadrant(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, encode_quadrant(3, 1, 4))
        galaxy.starbase_locations.append(quad)
        galaxy.commander_locations.append(quad)
        galaxy.super_commander_location = quad
        galaxy.planets.append(Planet(SectorCoordinate.INVALID, PlanetClass.M, quadrant=quad))

        report = galaxy.supernova(quad)

        assert galaxy.is_supernova(quad)
        assert galaxy.get_chart_data(quad) == SUPERNOVA_MARKER + 1
        assert quad not in galaxy.starbase_locations
        assert quad not in galaxy.commander_locations
        assert not galaxy.super_commander_location.is_valid
        assert galaxy.planet_at(quad) is None
        assert report.hostiles == 3
        assert report.bases == 1
        assert report.commanders == 1
        assert report.super_commander
        assert report.planet

    def test_second_supernova_reports_nothing(self, galaxy, quad):
        galaxy.set_quadrant_data(quad, encode_quadrant(2, 0, 1))
        galaxy.supernova(quad)
        report = galaxy.supernova(quad)
        assert report.hostiles == 0

    def test_supernova_leaves_other_entries(self, galaxy, quad):
        other = QuadrantCoordinate(1, 2)
        galaxy.commander_locations.append(other)
        galaxy.supernova(quad)
        assert galaxy.commander_locations == [other]


class TestRandomQuadrant:
    """Tests for random quadrant selection."""

    def test_draws_from_given_source(self):
        a = [Galaxy.random_quadrant(random.Random(7)) for _ in range(3)]
        b = [Galaxy.random_quadrant(random.Random(7)) for _ in range(3)]
        assert a == b
        assert all(q.is_valid for q in a)
