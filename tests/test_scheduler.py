"""
Unit tests for scheduled event processing.

Run with: python -m pytest tests/test_scheduler.py -v
"""

import random

import pytest

from supertrek.coordinates import QuadrantCoordinate, SectorCoordinate
from supertrek.entities import Hostile, HostileKind, Starbase
from supertrek.galaxy import SUPERNOVA_MARKER, encode_quadrant
from supertrek.quadrant import Quadrant
from supertrek.ship import DeviceType
from supertrek.state import FutureEventType, GameOutcome, GameState
from supertrek.scheduler import PROBE_MAX_MOVES, EventScheduler


HOME = QuadrantCoordinate(4, 4)


def make_state() -> GameState:
    """Ship in quadrant 4 - 4 with one commander and one super-commander left."""
    state = GameState(rng=random.Random(3))
    state.quadrant = Quadrant(HOME)
    state.ship.quadrant = HOME
    state.set_ship_sector(SectorCoordinate(5, 5))
    state.stardate = state.initial_stardate = 2200.0
    state.time_remaining = state.initial_time = 14.0
    state.remaining_klingons = 5
    state.remaining_commanders = 1
    state.remaining_super_commanders = 1
    state.remaining_bases = 2
    return state


def supernova_quadrants(state):
    return [
        QuadrantCoordinate(x, y)
        for x in range(1, 9)
        for y in range(1, 9)
        if state.galaxy.is_supernova(QuadrantCoordinate(x, y))
    ]


# Fixtures

@pytest.fixture
def scheduler() -> EventScheduler:
    return EventScheduler()


@pytest.fixture
def state() -> GameState:
    return make_state()


class TestProcessing:
    """Tests for the event loop."""

    def test_initial_events(self, scheduler, state):
        scheduler.schedule_initial_events(state)
        events = state.future_events
        assert events[FutureEventType.SUPERNOVA] > state.stardate
        assert events[FutureEventType.TRACTOR_BEAM] > state.stardate
        assert events[FutureEventType.BASE_ATTACK] > state.stardate
        assert events[FutureEventType.SUPER_COMMANDER_MOVES] == pytest.approx(state.stardate + 0.2777)
        assert events[FutureEventType.PROBE_MOVE] == 0.0

    def test_kind_order_beats_time_order(self, scheduler, state):
        """Test that due events fire in declaration order, not due-date order."""
        state.remaining_commanders = 0
        state.schedule(FutureEventType.SNAPSHOT, state.stardate - 0.1)
        state.schedule(FutureEventType.BASE_ATTACK, state.stardate - 0.5)

        fired = scheduler.process_events(state)

        assert fired == [FutureEventType.SNAPSHOT, FutureEventType.BASE_ATTACK]

    def test_future_events_wait(self, scheduler, state):
        state.schedule(FutureEventType.SNAPSHOT, state.stardate + 1.0)
        assert scheduler.process_events(state) == []
        assert state.snapshot is None

    def test_nothing_fires_after_game_over(self, scheduler, state):
        state.schedule(FutureEventType.SNAPSHOT, state.stardate)
        state.end_game(GameOutcome.TIME_EXPIRED)
        assert scheduler.process_events(state) == []

    def test_snapshot(self, scheduler, state):
        state.schedule(FutureEventType.SNAPSHOT, state.stardate)
        scheduler.process_events(state)
        assert state.snapshot is not None
        assert state.snapshot.remaining_klingons == 5
        assert state.future_events[FutureEventType.SNAPSHOT] > state.stardate


class TestSupernova:
    """Tests for supernovas."""

    def test_random_supernova(self, scheduler, state):
        state.schedule(FutureEventType.SUPERNOVA, state.stardate)
        scheduler.process_events(state)
        assert len(supernova_quadrants(state)) == 1
        assert state.future_events[FutureEventType.SUPERNOVA] > state.stardate

    def test_remote_losses(self, scheduler, state):
        target = QuadrantCoordinate(1, 1)
        state.galaxy.set_quadrant_data(target, encode_quadrant(3, 1, 2))
        state.galaxy.commander_locations.append(target)
        state.galaxy.starbase_locations.append(target)

        scheduler.destroy_quadrant(state, target)

        assert state.galaxy.is_supernova(target)
        assert state.remaining_klingons == 3
        assert state.remaining_commanders == 0
        assert state.remaining_bases == 1
        assert not state.is_game_over

    def test_supernova_can_win(self, scheduler, state):
        target = QuadrantCoordinate(2, 7)
        state.remaining_klingons = 2
        state.remaining_commanders = 0
        state.remaining_super_commanders = 0
        state.galaxy.set_quadrant_data(target, encode_quadrant(2, 0, 0))

        scheduler.destroy_quadrant(state, target)

        assert state.outcome is GameOutcome.WON

    def test_base_under_attack_cleared(self, scheduler, state):
        target = QuadrantCoordinate(6, 6)
        state.base_under_attack = target
        state.schedule(FutureEventType.COMMANDER_DESTROYS_BASE, state.stardate + 1.0)

        scheduler.destroy_quadrant(state, target)

        assert not state.base_under_attack.is_valid
        assert state.future_events[FutureEventType.COMMANDER_DESTROYS_BASE] == 0.0

    def test_trapped_without_warp(self, scheduler, state):
        state.ship.devices.add_damage(DeviceType.WARP_ENGINES, 1.0)
        scheduler.destroy_quadrant(state, HOME)
        assert state.outcome is GameOutcome.SUPERNOVA

    def test_emergency_escape(self, scheduler, state):
        scheduler.destroy_quadrant(state, HOME)
        assert not state.is_game_over
        assert state.ship.quadrant != HOME
        assert state.ship.quadrant.distance_to(HOME) < 2
        assert state.galaxy.is_supernova(HOME)

    def test_escape_into_supernova(self, scheduler, state):
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx or dy:
                    state.galaxy.set_quadrant_data(
                        QuadrantCoordinate(HOME.x + dx, HOME.y + dy), SUPERNOVA_MARKER
                    )
        scheduler.destroy_quadrant(state, HOME)
        assert state.outcome is GameOutcome.SUPERNOVAED_WHILE_ESCAPING


class TestCommanders:
    """Tests for commander events."""

    def test_tractor_beam(self, scheduler, state):
        target = QuadrantCoordinate(1, 1)
        state.galaxy.commander_locations.append(target)
        state.galaxy.set_quadrant_data(target, encode_quadrant(1, 0, 0))
        state.schedule(FutureEventType.TRACTOR_BEAM, state.stardate)

        scheduler.process_events(state)

        assert state.ship.quadrant == target
        assert state.quadrant.count_kind(HostileKind.COMMANDER) == 1
        assert state.future_events[FutureEventType.TRACTOR_BEAM] > 0

    def test_cloak_blocks_tractor_beam(self, scheduler, state):
        state.galaxy.commander_locations.append(QuadrantCoordinate(1, 1))
        state.ship.is_cloaked = True
        state.schedule(FutureEventType.TRACTOR_BEAM, state.stardate)

        scheduler.process_events(state)

        assert state.ship.quadrant == HOME

    def test_base_attack_starts(self, scheduler, state):
        base = QuadrantCoordinate(3, 3)
        state.galaxy.starbase_locations.append(base)
        state.galaxy.commander_locations.append(QuadrantCoordinate(2, 2))
        state.schedule(FutureEventType.BASE_ATTACK, state.stardate)

        scheduler.process_events(state)

        assert state.base_under_attack == base
        due = state.future_events[FutureEventType.COMMANDER_DESTROYS_BASE]
        assert state.stardate + 1.0 <= due <= state.stardate + 3.0

    def test_attack_marks_local_base(self, scheduler, state):
        state.galaxy.starbase_locations.append(HOME)
        state.quadrant.set_starbase(Starbase(SectorCoordinate(2, 2), quadrant=HOME))
        state.galaxy.commander_locations.append(QuadrantCoordinate(3, 3))
        state.schedule(FutureEventType.BASE_ATTACK, state.stardate)

        scheduler.process_events(state)

        starbase = state.quadrant.starbase
        assert starbase.is_under_attack
        assert starbase.destruction_date == state.future_events[FutureEventType.COMMANDER_DESTROYS_BASE]

    def test_distant_commander_does_not_attack(self, scheduler, state):
        state.galaxy.starbase_locations.append(QuadrantCoordinate(8, 8))
        state.galaxy.commander_locations.append(QuadrantCoordinate(1, 1))
        state.schedule(FutureEventType.BASE_ATTACK, state.stardate)

        scheduler.process_events(state)

        assert not state.base_under_attack.is_valid
        assert state.future_events[FutureEventType.BASE_ATTACK] > state.stardate

    def test_base_destroyed(self, scheduler, state):
        base = QuadrantCoordinate(3, 3)
        state.galaxy.starbase_locations.append(base)
        state.galaxy.set_quadrant_data(base, encode_quadrant(1, 1, 0))
        state.base_under_attack = base
        state.schedule(FutureEventType.COMMANDER_DESTROYS_BASE, state.stardate)

        scheduler.process_events(state)

        assert state.remaining_bases == 1
        assert state.bases_destroyed == 1
        assert state.galaxy.starbase_count(base) == 0
        assert not state.base_under_attack.is_valid

    def test_base_defended(self, scheduler, state):
        state.galaxy.starbase_locations.append(HOME)
        state.base_under_attack = HOME
        state.schedule(FutureEventType.COMMANDER_DESTROYS_BASE, state.stardate)

        scheduler.process_events(state)

        assert state.remaining_bases == 2
        assert HOME in state.galaxy.starbase_locations


class TestSuperCommander:
    """Tests for super-commander movement."""

    def test_moves_toward_ship(self, scheduler, state):
        state.galaxy.super_commander_location = QuadrantCoordinate(1, 1)
        state.galaxy.set_quadrant_data(QuadrantCoordinate(1, 1), encode_quadrant(1, 0, 0))
        state.schedule(FutureEventType.SUPER_COMMANDER_MOVES, state.stardate)

        scheduler.process_events(state)

        assert state.galaxy.super_commander_location == QuadrantCoordinate(2, 2)
        assert state.galaxy.hostile_count(QuadrantCoordinate(1, 1)) == 0
        assert state.galaxy.hostile_count(QuadrantCoordinate(2, 2)) == 1

    def test_enters_ship_quadrant(self, scheduler, state):
        state.galaxy.super_commander_location = QuadrantCoordinate(3, 3)
        state.galaxy.set_quadrant_data(QuadrantCoordinate(3, 3), encode_quadrant(1, 0, 0))
        state.schedule(FutureEventType.SUPER_COMMANDER_MOVES, state.stardate)

        scheduler.process_events(state)

        assert state.galaxy.super_commander_location == HOME
        assert state.quadrant.has_super_commander

    def test_stays_while_engaged(self, scheduler, state):
        state.galaxy.super_commander_location = HOME
        state.quadrant.add_hostile(
            Hostile(HostileKind.SUPER_COMMANDER, SectorCoordinate(1, 1), 1200.0)
        )
        state.schedule(FutureEventType.SUPER_COMMANDER_MOVES, state.stardate)

        scheduler.process_events(state)

        assert state.galaxy.super_commander_location == HOME

    def test_avoids_supernova(self, scheduler, state):
        state.galaxy.super_commander_location = QuadrantCoordinate(1, 1)
        state.galaxy.set_quadrant_data(QuadrantCoordinate(2, 2), SUPERNOVA_MARKER)
        state.schedule(FutureEventType.SUPER_COMMANDER_MOVES, state.stardate)

        scheduler.process_events(state)

        assert state.galaxy.super_commander_location == QuadrantCoordinate(1, 1)

    def test_destroys_base(self, scheduler, state):
        base = QuadrantCoordinate(7, 7)
        state.galaxy.super_commander_location = base
        state.galaxy.starbase_locations.append(base)
        state.galaxy.set_quadrant_data(base, encode_quadrant(1, 1, 0))
        state.schedule(FutureEventType.SUPER_COMMANDER_DESTROYS_BASE, state.stardate)

        scheduler.process_events(state)

        assert base not in state.galaxy.starbase_locations
        assert state.remaining_bases == 1


class TestProbe:
    """Tests for deep-space probes."""

    def test_launch(self, scheduler, state):
        result = scheduler.launch_probe(state, 3.0, armed=False)
        assert result.success
        assert state.ship.probes == 2
        assert state.probe.in_flight
        assert state.future_events[FutureEventType.PROBE_MOVE] == pytest.approx(state.stardate + 0.1)

    def test_launch_refusals(self, scheduler, state):
        assert not scheduler.launch_probe(state, 0.0, armed=False).success
        state.ship.devices.add_damage(DeviceType.DEEP_SPACE_PROBE, 1.0)
        assert not scheduler.launch_probe(state, 3.0, armed=False).success
        state.ship.devices.repair_all()
        state.ship.probes = 0
        assert not scheduler.launch_probe(state, 3.0, armed=False).success

    def test_one_probe_at_a_time(self, scheduler, state):
        scheduler.launch_probe(state, 3.0, armed=False)
        assert not scheduler.launch_probe(state, 7.0, armed=False).success
        assert state.ship.probes == 2

    def test_probe_charts_quadrants(self, scheduler, state):
        scheduler.launch_probe(state, 3.0, armed=False)
        state.stardate += 0.1

        scheduler.process_events(state)

        assert state.galaxy.is_charted(QuadrantCoordinate(5, 4))
        assert state.probe.moves_remaining == 9

    def test_armed_probe_detonates(self, scheduler, state):
        target = QuadrantCoordinate(5, 4)
        state.galaxy.set_quadrant_data(target, encode_quadrant(2, 0, 3))
        scheduler.launch_probe(state, 3.0, armed=True)
        state.stardate += 0.1

        scheduler.process_events(state)

        assert state.galaxy.is_supernova(target)
        assert state.remaining_klingons == 3
        assert not state.probe.in_flight

    def test_probe_leaves_galaxy(self, scheduler, state):
        state.ship.quadrant = QuadrantCoordinate(8, 4)
        scheduler.launch_probe(state, 3.0, armed=False)
        state.stardate += 0.1

        scheduler.process_events(state)

        assert not state.probe.in_flight
        assert "Probe has left the galaxy." in state.channel.messages()

    def test_probe_runs_out_of_fuel(self, scheduler, state):
        """Test that a probe kept inside the galaxy stops after its last move."""
        state.ship.quadrant = QuadrantCoordinate(1, 1)
        state.set_ship_sector(SectorCoordinate(1, 1))
        scheduler.launch_probe(state, 1.0, armed=False)

        for _ in range(PROBE_MAX_MOVES):
            state.stardate += 0.1
            scheduler.process_events(state)

        assert state.probe.moves_remaining == 0
        assert state.probe.quadrant == QuadrantCoordinate(8, 8)
        assert state.future_events[FutureEventType.PROBE_MOVE] == 0.0
        assert "Probe has exhausted its fuel." in state.channel.messages()
        assert "Probe has left the galaxy." not in state.channel.messages()
