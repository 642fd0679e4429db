"""
Unit tests for the player's ship and its device table.

Run with: python -m pytest tests/test_ship.py -v
"""

import pytest

from supertrek.ship import MAX_ENERGY, DeviceType, Ship, ShipDevices


# Fixtures

@pytest.fixture
def ship() -> Ship:
    return Ship()


class TestShipDevices:
    """Tests for device damage bookkeeping."""

    def test_all_devices_start_operational(self):
        devices = ShipDevices()
        assert all(devices.is_operational(d) for d in DeviceType)
        assert devices.damaged_count == 0

    def test_damage_floors_at_zero(self):
        devices = ShipDevices()
        devices.add_damage(DeviceType.PHASERS, 1.5)
        devices.repair(DeviceType.PHASERS, 4.0)
        assert devices.damage(DeviceType.PHASERS) == 0.0
        devices.set_damage(DeviceType.SHIELDS, -2.0)
        assert devices.damage(DeviceType.SHIELDS) == 0.0

    def test_operational_iff_zero_damage(self):
        devices = ShipDevices()
        devices.add_damage(DeviceType.WARP_ENGINES, 0.01)
        assert not devices.is_operational(DeviceType.WARP_ENGINES)

    def test_damaged_devices_worst_first(self):
        devices = ShipDevices()
        devices.add_damage(DeviceType.COMPUTER, 1.0)
        devices.add_damage(DeviceType.TRANSPORTER, 3.0)
        assert [d for d, _ in devices.damaged_devices()] == [
            DeviceType.TRANSPORTER, DeviceType.COMPUTER
        ]


class TestShip:
    """Tests for ship resource pools."""

    def test_defaults(self, ship):
        assert ship.energy == MAX_ENERGY
        assert ship.torpedoes == 10
        assert ship.probes == 3
        assert not ship.shields_up

    def test_use_energy_refuses_overdraw(self, ship):
        ship.energy = 100.0
        assert not ship.use_energy(150.0)
        assert ship.energy == 100.0
        assert ship.use_energy(100.0)
        assert ship.energy == 0.0

    def test_resupply(self, ship):
        ship.energy = 10.0
        ship.torpedoes = 0
        ship.devices.add_damage(DeviceType.PHASERS, 2.0)
        ship.resupply()
        assert ship.energy == ship.max_energy
        assert ship.shield == ship.max_shield
        assert ship.torpedoes == ship.max_torpedoes
        assert ship.devices.damaged_count == 0

    def test_total_energy(self, ship):
        ship.energy = 1200.0
        ship.shield = 300.0
        assert ship.total_energy == 1500.0
