"""
Unit tests for quadrant entry and population.

Run with: python -m pytest tests/test_population.py -v
"""

import random

import pytest

from supertrek.coordinates import QuadrantCoordinate, SectorCoordinate
from supertrek.entities import HostileKind, Planet, PlanetClass
from supertrek.galaxy import encode_quadrant
from supertrek.population import (
    enter_quadrant,
    hostile_power,
    quadrant_name,
)
from supertrek.ship import Condition
from supertrek.state import FutureEventType, GameState, SkillLevel


# Fixtures

@pytest.fixture
def state() -> GameState:
    s = GameState(skill=SkillLevel.GOOD, rng=random.Random(11))
    s.ship.sector = SectorCoordinate(5, 5)
    return s


@pytest.fixture
def target() -> QuadrantCoordinate:
    return QuadrantCoordinate(4, 5)


class TestQuadrantName:
    """Tests for quadrant display names."""

    @pytest.mark.parametrize("coord,expected", [
        (QuadrantCoordinate(1, 1), "Antares I"),
        (QuadrantCoordinate(2, 3), "Rigel III"),
        (QuadrantCoordinate(2, 7), "Deneb III"),
        (QuadrantCoordinate(8, 8), "Spica IV"),
    ])
    def test_names(self, coord, expected):
        assert quadrant_name(coord) == expected

    def test_invalid(self):
        assert quadrant_name(QuadrantCoordinate.INVALID) == "Unknown"


class TestHostilePower:
    """Tests for spawn power ranges."""

    def test_klingon_range(self):
        rng = random.Random(5)
        for _ in range(20):
            power = hostile_power(HostileKind.KLINGON, SkillLevel.GOOD, rng)
            assert 450 <= power <= 650

    def test_commander_stronger_than_klingon_floor(self):
        power = hostile_power(HostileKind.COMMANDER, SkillLevel.NOVICE, random.Random(5))
        assert power >= 675


class TestEnterQuadrant:
    """Tests for materializing a quadrant from aggregate counts."""

    def test_counts_match_galaxy(self, state, target):
        state.galaxy.set_quadrant_data(target, encode_quadrant(3, 1, 4))
        quadrant = enter_quadrant(state, target)
        assert len(quadrant.stars) == 4
        assert quadrant.starbase is not None
        assert quadrant.count_kind(HostileKind.KLINGON) == 3
        assert state.quadrant is quadrant
        assert state.ship.quadrant == target

    def test_commander_slot(self, state, target):
        state.galaxy.set_quadrant_data(target, encode_quadrant(2, 0, 0))
        state.galaxy.commander_locations.append(target)
        state.galaxy.super_commander_location = target
        quadrant = enter_quadrant(state, target)
        assert quadrant.count_kind(HostileKind.COMMANDER) == 1
        assert quadrant.count_kind(HostileKind.SUPER_COMMANDER) == 1
        assert quadrant.count_kind(HostileKind.KLINGON) == 0

    def test_requested_sector_honoured(self, state, target):
        enter_quadrant(state, target, requested_sector=SectorCoordinate(2, 9))
        assert state.ship.sector == SectorCoordinate(2, 9)
        assert state.quadrant.ship_sector == SectorCoordinate(2, 9)

    def test_entry_undocks_and_charts(self, state, target):
        state.ship.is_docked = True
        enter_quadrant(state, target)
        assert not state.ship.is_docked
        assert state.galaxy.is_charted(target)

    def test_planet_materialized(self, state, target):
        planet = Planet(SectorCoordinate.INVALID, PlanetClass.M, quadrant=target)
        state.galaxy.planets.append(planet)
        quadrant = enter_quadrant(state, target)
        assert quadrant.planet is planet
        assert planet.position.is_valid

    def test_attacked_base_keeps_its_deadline(self, state, target):
        """Test that re-entering a besieged quadrant restores the attack."""
        state.galaxy.set_quadrant_data(target, encode_quadrant(0, 1, 0))
        state.base_under_attack = target
        state.schedule(FutureEventType.COMMANDER_DESTROYS_BASE, 2.5)

        quadrant = enter_quadrant(state, target)

        assert quadrant.starbase.is_under_attack
        assert quadrant.starbase.destruction_date == 2.5

    def test_quiet_base_not_under_attack(self, state, target):
        state.galaxy.set_quadrant_data(target, encode_quadrant(0, 1, 0))
        quadrant = enter_quadrant(state, target)
        assert not quadrant.starbase.is_under_attack
        assert quadrant.starbase.destruction_date == 0.0

    def test_red_condition_with_hostiles(self, state, target):
        state.galaxy.set_quadrant_data(target, encode_quadrant(1, 0, 0))
        enter_quadrant(state, target)
        assert state.ship.condition is Condition.RED

    def test_announcement(self, state, target):
        enter_quadrant(state, target)
        assert "Entering Betelgeuse I Quadrant..." in state.channel.messages()

    def test_silent_entry(self, state, target):
        enter_quadrant(state, target, announce=False)
        assert not any(m.startswith("Entering") for m in state.channel.messages())

    def test_same_seed_same_layout(self, target):
        """Test that a seeded entry places everything identically."""
        layouts = []
        for _ in range(2):
            s = GameState(rng=random.Random(21))
            s.ship.sector = SectorCoordinate(5, 5)
            s.galaxy.set_quadrant_data(target, encode_quadrant(2, 1, 5))
            enter_quadrant(s, target)
            layouts.append(s.quadrant.grid())
        assert layouts[0] == layouts[1]

    def test_hostiles_sorted_by_distance(self, state, target):
        state.galaxy.set_quadrant_data(target, encode_quadrant(4, 0, 0))
        quadrant = enter_quadrant(state, target)
        distances = [h.distance for h in quadrant.hostiles]
        assert distances == sorted(distances)
