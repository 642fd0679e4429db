"""
Unit tests for the coordinate model.

Run with: python -m pytest tests/test_coordinates.py -v
"""

import math

import pytest

from supertrek.coordinates import (
    GalacticPosition,
    QuadrantCoordinate,
    SectorCoordinate,
    clamp_sector,
    course_vector,
    is_valid_course,
    nearest_sector,
)


class TestQuadrantCoordinate:
    """Tests for galaxy-level coordinates."""

    def test_valid_range(self):
        assert QuadrantCoordinate(1, 1).is_valid
        assert QuadrantCoordinate(8, 8).is_valid
        assert not QuadrantCoordinate(0, 4).is_valid
        assert not QuadrantCoordinate(4, 9).is_valid

    def test_invalid_sentinel(self):
        assert QuadrantCoordinate.INVALID == QuadrantCoordinate(-1, -1)
        assert not QuadrantCoordinate.INVALID.is_valid

    def test_border(self):
        assert QuadrantCoordinate(1, 5).is_border
        assert QuadrantCoordinate(5, 8).is_border
        assert not QuadrantCoordinate(4, 4).is_border

    def test_value_semantics(self):
        """Equal coordinates hash alike so they work as dict keys."""
        a = QuadrantCoordinate(3, 4)
        b = QuadrantCoordinate(3, 4)
        assert a == b
        assert len({a, b}) == 1

    def test_distance(self):
        assert QuadrantCoordinate(1, 1).distance_to(QuadrantCoordinate(4, 5)) == pytest.approx(5.0)

    def test_str(self):
        assert str(QuadrantCoordinate(2, 7)) == "2 - 7"


class TestSectorCoordinate:
    """Tests for sector-level coordinates."""

    def test_valid_range(self):
        assert SectorCoordinate(10, 10).is_valid
        assert not SectorCoordinate(11, 1).is_valid
        assert not SectorCoordinate.INVALID.is_valid

    def test_adjacent(self):
        center = SectorCoordinate(5, 5)
        assert center.is_adjacent(SectorCoordinate(4, 6))
        assert not center.is_adjacent(center)
        assert not center.is_adjacent(SectorCoordinate(7, 5))


class TestGalacticPosition:
    """Tests for combined positions."""

    def test_distance_in_quadrant_units(self):
        a = GalacticPosition(QuadrantCoordinate(1, 1), SectorCoordinate(5, 5))
        b = GalacticPosition(QuadrantCoordinate(2, 1), SectorCoordinate(5, 5))
        assert a.distance_to(b) == pytest.approx(1.0)

    def test_sector_offsets_are_tenths(self):
        a = GalacticPosition(QuadrantCoordinate(1, 1), SectorCoordinate(2, 5))
        b = GalacticPosition(QuadrantCoordinate(1, 1), SectorCoordinate(5, 5))
        assert a.distance_to(b) == pytest.approx(0.3)


class TestCourses:
    """Tests for course handling."""

    @pytest.mark.parametrize("direction,expected", [
        (3.0, (1.0, 0.0)),
        (7.0, (0.0, -1.0)),
        (11.0, (-1.0, 0.0)),
    ])
    def test_cardinal_courses(self, direction, expected):
        dx, dy = course_vector(direction)
        assert dx == pytest.approx(expected[0], abs=1e-9)
        assert dy == pytest.approx(expected[1], abs=1e-9)

    @pytest.mark.parametrize("direction", [1.0, 2.5, 4.0, 9.75, 12.0])
    def test_unit_length(self, direction):
        dx, dy = course_vector(direction)
        assert math.hypot(dx, dy) == pytest.approx(1.0)

    def test_valid_course_range(self):
        assert is_valid_course(1.0)
        assert is_valid_course(12.0)
        assert not is_valid_course(0.5)
        assert not is_valid_course(12.5)

    def test_nearest_and_clamp(self):
        assert nearest_sector(4.6, 2.2) == SectorCoordinate(5, 2)
        assert not nearest_sector(10.7, 3.0).is_valid
        assert clamp_sector(10.7, -0.4) == SectorCoordinate(10, 1)
