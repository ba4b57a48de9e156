"""Race strategy records produced by the optimizer and replayed by the simulator.

A ``RaceStrategy`` is never mutated; changing its pit stops produces a new
record via ``with_pit_stops``.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, with_config

from pitstrategy.errors import InvalidConfigError
from pitstrategy.tires import TireCompound

logger = logging.getLogger(__name__)


class PitStopReason(str, Enum):
    MANDATORY = "MANDATORY"
    UNDERCUT = "UNDERCUT"
    OVERCUT = "OVERCUT"
    TIRE_DEGRADATION = "TIRE_DEGRADATION"
    OPPORTUNISTIC = "OPPORTUNISTIC"
    DAMAGE = "DAMAGE"
    WEATHER_CHANGE = "WEATHER_CHANGE"


class ErsMode(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    HOTLAP = "HOTLAP"
    OVERTAKE = "OVERTAKE"


@dataclass(frozen=True)
class PitStop:
    """A tire change at the end of ``lap``; ``compound`` is fitted for lap + 1."""

    lap: int
    compound: TireCompound
    pit_loss: float  # seconds
    reason: PitStopReason = PitStopReason.OPPORTUNISTIC
    confidence: float = 1.0

    def __post_init__(self) -> None:
        if self.lap < 1:
            raise InvalidConfigError("pit_stop.lap", self.lap, "must be >= 1")
        if self.pit_loss < 0:
            raise InvalidConfigError("pit_stop.pit_loss", self.pit_loss, "cannot be negative")
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidConfigError("pit_stop.confidence", self.confidence, "must be in [0, 1]")


@dataclass(frozen=True)
class Stint:
    """Represents a racing stint."""

    compound: TireCompound
    start_lap: int
    end_lap: int

    @property
    def length(self) -> int:
        return self.end_lap - self.start_lap + 1


@dataclass(frozen=True)
class FuelStrategy:
    starting_fuel: float  # kg
    fuel_saving_per_lap: float = 0.0
    fuel_saving_laps: tuple[int, ...] = ()
    minimum_buffer: float = 1.0


@dataclass(frozen=True)
class ErsDeploymentPlan:
    """Energy deployment plan; carried through untouched by this package."""

    default_mode: ErsMode = ErsMode.MEDIUM
    lap_overrides: tuple[tuple[int, ErsMode], ...] = ()
    overtake_laps: tuple[int, ...] = ()


@dataclass(frozen=True)
class StrategyMetadata:
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    optimizer_version: str = ""
    num_simulations: int = 0
    source: str = "pit-strategy-optimizer"


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class RaceStrategy:
    """Represents a pit strategy."""

    id: str
    starting_compound: TireCompound
    pit_stops: tuple[PitStop, ...]
    fuel_strategy: FuelStrategy
    predicted_race_time: float  # seconds
    confidence: float
    metadata: StrategyMetadata = field(default_factory=StrategyMetadata)
    ers_plan: Optional[ErsDeploymentPlan] = None
    expected_lap_times: tuple[tuple[float, ...], ...] = ()  # per stint

    def __post_init__(self) -> None:
        # Accept any iterable of stops but always store a tuple
        object.__setattr__(self, "pit_stops", tuple(self.pit_stops))

        laps = [stop.lap for stop in self.pit_stops]
        if any(later <= earlier for earlier, later in zip(laps, laps[1:])):
            raise InvalidConfigError("pit_stops", laps, "laps must be strictly increasing")
        if not self.predicted_race_time > 0:
            raise InvalidConfigError(
                "predicted_race_time", self.predicted_race_time, "must be positive"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidConfigError("confidence", self.confidence, "must be in [0, 1]")

    @property
    def num_pit_stops(self) -> int:
        return len(self.pit_stops)

    @property
    def total_pit_loss(self) -> float:
        return sum(stop.pit_loss for stop in self.pit_stops)

    @property
    def compounds_used(self) -> set[TireCompound]:
        return {self.starting_compound, *(stop.compound for stop in self.pit_stops)}

    def pit_stop_on_lap(self, lap: int) -> Optional[PitStop]:
        for stop in self.pit_stops:
            if stop.lap == lap:
                return stop
        return None

    def stint_for_lap(self, lap: int) -> int:
        """Zero-based stint index the car is on during ``lap``."""
        return sum(1 for stop in self.pit_stops if stop.lap < lap)

    def compound_for_lap(self, lap: int) -> TireCompound:
        compound = self.starting_compound
        for stop in self.pit_stops:
            if stop.lap < lap:
                compound = stop.compound
        return compound

    def stints(self, total_laps: int) -> list[Stint]:
        """Split ``[1, total_laps]`` into consecutive stints."""
        stints = []
        start = 1
        compound = self.starting_compound
        for stop in self.pit_stops:
            stints.append(Stint(compound, start, stop.lap))
            start = stop.lap + 1
            compound = stop.compound
        stints.append(Stint(compound, start, total_laps))
        return stints

    def validate(self, total_laps: int) -> bool:
        """Check that every stint is non-empty and the race is covered."""
        if any(stop.lap >= total_laps for stop in self.pit_stops):
            return False
        stints = self.stints(total_laps)
        if any(stint.length < 1 for stint in stints):
            return False
        return sum(stint.length for stint in stints) == total_laps

    def with_pit_stops(self, pit_stops, **changes) -> "RaceStrategy":
        """Return a new strategy with a different pit stop list."""
        return replace(self, pit_stops=tuple(pit_stops), **changes)

    @property
    def description(self) -> str:
        parts = [self.starting_compound.value]
        parts.extend(f"{stop.compound.value}@L{stop.lap}" for stop in self.pit_stops)
        stops = self.num_pit_stops
        return f"{stops}-stop: " + " -> ".join(parts)
