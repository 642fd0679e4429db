"""
The player's ship: resource pools, flags and the device damage table.

Device damage is expressed in stardates-to-repair. A device is operational
exactly when its damage is zero. Damage never goes negative: repairs and new
damage both floor at zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .coordinates import GalacticPosition, QuadrantCoordinate, SectorCoordinate


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_ENERGY = 5000.0
MAX_SHIELD = 2500.0
MAX_TORPEDOES = 10
MAX_LIFE_SUPPORT = 2.5
MAX_PROBES = 3
DEFAULT_WARP_FACTOR = 5.0

# Condition turns yellow strictly below this energy level
LOW_ENERGY_THRESHOLD = 1000.0


# =============================================================================
# ENUMS
# =============================================================================

class DeviceType(Enum):
    """Ship systems that can be damaged."""
    SHORT_RANGE_SENSORS = 1
    LONG_RANGE_SENSORS = 2
    PHASERS = 3
    PHOTON_TUBES = 4
    LIFE_SUPPORT = 5
    WARP_ENGINES = 6
    IMPULSE_ENGINES = 7
    SHIELDS = 8
    SUBSPACE_RADIO = 9
    SHUTTLE_CRAFT = 10
    COMPUTER = 11
    TRANSPORTER = 12
    SHIELD_CONTROL = 13
    DEATH_RAY = 14
    DEEP_SPACE_PROBE = 15
    CLOAKING_DEVICE = 16


DEVICE_NAMES: dict[DeviceType, str] = {
    DeviceType.SHORT_RANGE_SENSORS: "S. R. Sensors",
    DeviceType.LONG_RANGE_SENSORS: "L. R. Sensors",
    DeviceType.PHASERS: "Phasers",
    DeviceType.PHOTON_TUBES: "Photon Tubes",
    DeviceType.LIFE_SUPPORT: "Life Support",
    DeviceType.WARP_ENGINES: "Warp Engines",
    DeviceType.IMPULSE_ENGINES: "Impulse Engines",
    DeviceType.SHIELDS: "Shields",
    DeviceType.SUBSPACE_RADIO: "Subspace Radio",
    DeviceType.SHUTTLE_CRAFT: "Shuttle Craft",
    DeviceType.COMPUTER: "Computer",
    DeviceType.TRANSPORTER: "Transporter",
    DeviceType.SHIELD_CONTROL: "Shield Control",
    DeviceType.DEATH_RAY: "Death Ray",
    DeviceType.DEEP_SPACE_PROBE: "D. S. Probe",
    DeviceType.CLOAKING_DEVICE: "Cloaking Device",
}


class Condition(Enum):
    """Derived alert state of the ship."""
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "*RED*"
    DOCKED = "DOCKED"


# =============================================================================
# DEVICES
# =============================================================================

class ShipDevices:
    """Damage table keyed by every DeviceType."""

    def __init__(self) -> None:
        self._damage: dict[DeviceType, float] = {device: 0.0 for device in DeviceType}

    def damage(self, device: DeviceType) -> float:
        return self._damage[device]

    def set_damage(self, device: DeviceType, damage: float) -> None:
        self._damage[device] = max(0.0, damage)

    def add_damage(self, device: DeviceType, damage: float) -> None:
        self._damage[device] = max(0.0, self._damage[device] + damage)

    def repair(self, device: DeviceType, amount: float) -> None:
        self._damage[device] = max(0.0, self._damage[device] - amount)

    def repair_all(self) -> None:
        for device in self._damage:
            self._damage[device] = 0.0

    def is_operational(self, device: DeviceType) -> bool:
        return self._damage[device] <= 0

    def damaged_devices(self) -> list[tuple[DeviceType, float]]:
        """Damaged devices, worst first."""
        damaged = [(d, v) for d, v in self._damage.items() if v > 0]
        return sorted(damaged, key=lambda item: item[1], reverse=True)

    @property
    def damaged_count(self) -> int:
        return sum(1 for v in self._damage.values() if v > 0)


# =============================================================================
# SHIP
# =============================================================================

@dataclass
class Ship:
    """
    Player vessel state.

    Attributes:
        quadrant: Current galaxy quadrant.
        sector: Current sector within the quadrant.
        energy: Main energy reserve.
        shield: Energy held by the shields.
        torpedoes: Photon torpedoes aboard.
        life_support: Life-support reserves in stardates.
        probes: Deep-space probes aboard.
        warp_factor: Current warp setting.
        shields_up: Whether shields are raised.
        shields_changing: Shields were raised or lowered this turn.
        is_cloaked: Whether the cloaking device is engaged.
        is_docked: Whether the ship is docked at a starbase.
        casualties: Crew lost so far.
        treaty_violations: Cloak engagements in front of Romulans.
        condition: Last derived condition (see GameState.update_condition).
    """
    quadrant: QuadrantCoordinate = QuadrantCoordinate.INVALID
    sector: SectorCoordinate = SectorCoordinate.INVALID
    energy: float = MAX_ENERGY
    shield: float = 0.0
    torpedoes: int = MAX_TORPEDOES
    life_support: float = MAX_LIFE_SUPPORT
    probes: int = MAX_PROBES
    warp_factor: float = DEFAULT_WARP_FACTOR
    shields_up: bool = False
    shields_changing: bool = False
    is_cloaked: bool = False
    is_docked: bool = False
    casualties: int = 0
    treaty_violations: int = 0
    condition: Condition = Condition.GREEN
    devices: ShipDevices = field(default_factory=ShipDevices)

    max_energy: float = MAX_ENERGY
    max_shield: float = MAX_SHIELD
    max_torpedoes: int = MAX_TORPEDOES
    max_life_support: float = MAX_LIFE_SUPPORT
    max_probes: int = MAX_PROBES

    name: str = "Enterprise"

    @property
    def position(self) -> GalacticPosition:
        return GalacticPosition(self.quadrant, self.sector)

    @property
    def total_energy(self) -> float:
        return self.energy + self.shield

    def is_device_operational(self, device: DeviceType) -> bool:
        return self.devices.is_operational(device)

    def use_energy(self, amount: float) -> bool:
        """Debit energy only if enough is available."""
        if self.energy < amount:
            return False
        self.energy -= amount
        return True

    def resupply(self) -> None:
        """Refill every pool and repair every device."""
        self.energy = self.max_energy
        self.shield = self.max_shield
        self.torpedoes = self.max_torpedoes
        self.life_support = self.max_life_support
        self.probes = self.max_probes
        self.devices.repair_all()
