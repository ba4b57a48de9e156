"""Tire degradation and fuel modeling.

Physics reasoning:
- Wear grows linearly with tire age. Severe tracks, aggressive setups and
  heat above the reference track temperature all raise the wear rate.
- Grip falls linearly with wear from the compound's baseline grip level, and
  every point of grip lost costs a fixed fraction of the base lap time.
- Carried fuel costs lap time linearly (seconds per kg), and the car burns
  slightly more fuel per lap when it is heavier.

Everything here is a pure function of its inputs.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np

from pitstrategy.config import DEFAULT_CONFIG, ModelConfig
from pitstrategy.errors import InvalidConfigError, NumericError
from pitstrategy.tires import TireCompound
from pitstrategy.track import Circuit

logger = logging.getLogger(__name__)

MAX_FUEL_CAPACITY = 110.0  # kg
TYPICAL_CONSUMPTION = 1.6  # kg/lap


@dataclass(frozen=True)
class DegradationFactors:
    """Race-specific multipliers on the nominal wear rate."""

    track_severity: float = 1.0
    temperature_factor: float = 1.0
    driving_style_factor: float = 1.0
    fuel_load_factor: float = 1.0
    downforce_factor: float = 1.0
    temperature_sensitivity: float = 0.01  # extra wear rate per °C above reference
    reference_track_temp: float = 30.0  # °C

    def total_multiplier(self) -> float:
        return (
            self.track_severity
            * self.temperature_factor
            * self.driving_style_factor
            * self.fuel_load_factor
            * self.downforce_factor
        )

    def temperature_multiplier(self, track_temperature: float) -> float:
        excess = max(0.0, track_temperature - self.reference_track_temp)
        return 1.0 + self.temperature_sensitivity * excess

    def validate(self) -> None:
        """Reject multipliers that would push wear outside [0, 1]."""
        for name in (
            "track_severity",
            "temperature_factor",
            "driving_style_factor",
            "fuel_load_factor",
            "downforce_factor",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise NumericError(f"factors.{name}", value, "must be positive and finite")
        if not math.isfinite(self.temperature_sensitivity) or self.temperature_sensitivity < 0:
            raise NumericError(
                "factors.temperature_sensitivity",
                self.temperature_sensitivity,
                "must be non-negative and finite",
            )
        if not math.isfinite(self.reference_track_temp):
            raise NumericError(
                "factors.reference_track_temp", self.reference_track_temp, "must be finite"
            )


@dataclass(frozen=True)
class FuelConsumptionModel:
    """Fuel burn per lap and the lap-time cost of carrying fuel."""

    base_rate: float = TYPICAL_CONSUMPTION  # kg/lap
    track_multiplier: float = 1.0
    fuel_load_factor: float = 0.0005  # consumption increase per kg carried
    penalty_per_kg: float = 0.03  # seconds per lap per kg carried
    minimum_buffer: float = 1.0  # kg

    def validate(self) -> None:
        """Reject coefficients that would make lap times non-finite."""
        if not math.isfinite(self.base_rate) or self.base_rate <= 0:
            raise NumericError("fuel_model.base_rate", self.base_rate, "must be a positive finite burn rate")
        if not math.isfinite(self.track_multiplier) or self.track_multiplier <= 0:
            raise NumericError(
                "fuel_model.track_multiplier", self.track_multiplier, "must be positive and finite"
            )
        if not math.isfinite(self.fuel_load_factor) or self.fuel_load_factor < 0:
            raise NumericError(
                "fuel_model.fuel_load_factor", self.fuel_load_factor, "must be non-negative and finite"
            )
        if not math.isfinite(self.penalty_per_kg) or self.penalty_per_kg < 0:
            raise NumericError(
                "fuel_model.penalty_per_kg", self.penalty_per_kg, "must be non-negative and finite"
            )

    def consumption_per_lap(self, current_fuel: float, track_factor: float = 1.0) -> float:
        load_impact = 1.0 + max(current_fuel, 0.0) * self.fuel_load_factor
        return self.base_rate * self.track_multiplier * track_factor * load_impact

    def fuel_needed_for_laps(
        self, laps: int, starting_fuel: float, track_factor: float = 1.0
    ) -> float:
        total = 0.0
        current = starting_fuel
        for _ in range(laps):
            burn = self.consumption_per_lap(current, track_factor)
            total += burn
            current -= burn
        return total

    def laps_remaining(self, current_fuel: float, track_factor: float = 1.0) -> float:
        if current_fuel < self.minimum_buffer:
            return 0.0
        usable = current_fuel - self.minimum_buffer
        return usable / self.consumption_per_lap(current_fuel / 2.0, track_factor)

    def fuel_saving_needed(
        self, current_fuel: float, remaining_laps: int, track_factor: float = 1.0
    ) -> Optional[float]:
        """Per-lap saving (kg) needed to finish, or None if none is needed."""
        if remaining_laps <= 0:
            return None
        needed = self.consumption_per_lap(current_fuel / 2.0, track_factor) * remaining_laps
        available = current_fuel - self.minimum_buffer
        if needed > available:
            return (needed - available) / remaining_laps
        return None


class TireState(NamedTuple):
    wear: float  # 0-1
    grip_multiplier: float  # (0, 1]
    laps_until_pit: float  # whole laps before the pit-soon threshold
    pit_soon: bool


class FuelState(NamedTuple):
    consumed: float  # kg
    remaining: float  # kg
    lap_time_penalty: float  # seconds per lap from carried fuel


def wear_rate(
    compound: TireCompound,
    track_temperature: float = 30.0,
    track_severity: float = 1.0,
    factors: Optional[DegradationFactors] = None,
) -> float:
    """Wear fraction added per lap.

    At nominal conditions a compound is half worn after its typical life and
    fully worn after twice that.
    """
    factors = factors or DegradationFactors()
    factors.validate()
    nominal = 1.0 / (2.0 * compound.characteristics.typical_life)
    return (
        nominal
        * max(track_severity, 0.0)
        * factors.total_multiplier()
        * factors.temperature_multiplier(track_temperature)
    )


def wear_fraction(
    compound: TireCompound,
    age_laps: float,
    track_temperature: float = 30.0,
    track_severity: float = 1.0,
    factors: Optional[DegradationFactors] = None,
) -> float:
    """Current wear in [0, 1]; clamps at 1.0 instead of extrapolating."""
    if age_laps < 0:
        raise InvalidConfigError("age_laps", age_laps, "cannot be negative")
    rate = wear_rate(compound, track_temperature, track_severity, factors)
    return min(1.0, age_laps * rate)


def grip_multiplier(
    compound: TireCompound, wear: float, config: ModelConfig = DEFAULT_CONFIG
) -> float:
    """Grip in (0, 1]; non-increasing in wear."""
    wear = min(max(wear, 0.0), 1.0)
    return compound.characteristics.grip_level * (1.0 - config.wear_grip_loss * wear)


def tire_state(
    compound: TireCompound,
    age_laps: float,
    track_temperature: float = 30.0,
    track_severity: float = 1.0,
    factors: Optional[DegradationFactors] = None,
    config: ModelConfig = DEFAULT_CONFIG,
) -> TireState:
    """Wear, grip and remaining useful laps of a set of tires."""
    rate = wear_rate(compound, track_temperature, track_severity, factors)
    wear = wear_fraction(compound, age_laps, track_temperature, track_severity, factors)

    if wear >= config.pit_soon_wear:
        laps_until_pit = 0.0
    elif rate <= 0:
        laps_until_pit = math.inf
    else:
        laps_until_pit = float(math.floor((config.pit_soon_wear - wear) / rate))

    pit_soon = wear >= config.pit_soon_wear or laps_until_pit < config.min_remaining_laps

    return TireState(
        wear=wear,
        grip_multiplier=grip_multiplier(compound, wear, config),
        laps_until_pit=laps_until_pit,
        pit_soon=pit_soon,
    )


def base_lap_time(circuit: Circuit, config: ModelConfig = DEFAULT_CONFIG) -> float:
    """Best-case dry lap time: fresh grip, empty tank.

    Uses the lap record scaled to race pace when one is known, otherwise the
    lap length over the average speed.
    """
    if circuit.lap_record is not None:
        base = circuit.lap_record * config.race_pace_factor
        field_name = "circuit.lap_record"
    else:
        speed = circuit.characteristics.average_speed
        field_name = "circuit.characteristics.average_speed"
        if speed <= 0:
            raise NumericError(field_name, speed, "must be positive to derive a lap time")
        base = (circuit.length / 1000.0) / speed * 3600.0

    if not math.isfinite(base) or base <= 0:
        raise NumericError(field_name, base, "gives a non-positive or non-finite base lap time")
    return base


def pace_multiplier(grip: float, config: ModelConfig = DEFAULT_CONFIG) -> float:
    return 1.0 + config.lap_time_sensitivity * (1.0 - grip)


def fuel_multiplier(base_time: float, fuel_kg: float, fuel_model: FuelConsumptionModel) -> float:
    return 1.0 + fuel_model.penalty_per_kg * max(fuel_kg, 0.0) / base_time


def lap_time(
    base_time: float,
    grip: float,
    fuel_kg: float,
    fuel_model: FuelConsumptionModel,
    config: ModelConfig = DEFAULT_CONFIG,
) -> float:
    """Lap time = base x grip pace multiplier x fuel penalty multiplier."""
    return base_time * pace_multiplier(grip, config) * fuel_multiplier(base_time, fuel_kg, fuel_model)


def fuel_profile(
    fuel_model: FuelConsumptionModel,
    starting_fuel: float,
    laps: int,
    track_factor: float = 1.0,
) -> np.ndarray:
    """Fuel on board at the start of each lap (index 0 = lap 1), never below 0."""
    profile = np.empty(laps, dtype=float)
    current = starting_fuel
    for i in range(laps):
        profile[i] = current
        current = max(0.0, current - fuel_model.consumption_per_lap(current, track_factor))
    return profile


def fuel_state(
    fuel_model: FuelConsumptionModel,
    starting_fuel: float,
    elapsed_laps: int,
    track_factor: float = 1.0,
) -> FuelState:
    """Fuel burnt after ``elapsed_laps`` and the lap-time cost of what is left."""
    remaining = starting_fuel
    for _ in range(elapsed_laps):
        remaining = max(0.0, remaining - fuel_model.consumption_per_lap(remaining, track_factor))
    return FuelState(
        consumed=starting_fuel - remaining,
        remaining=remaining,
        lap_time_penalty=fuel_model.penalty_per_kg * remaining,
    )


@dataclass(frozen=True)
class DegradationModel:
    """Degradation and fuel model bound to one race's conditions."""

    base_laptime: float  # seconds
    track_severity: float
    track_temperature: float
    fuel_track_factor: float
    factors: DegradationFactors = field(default_factory=DegradationFactors)
    fuel_model: FuelConsumptionModel = field(default_factory=FuelConsumptionModel)
    config: ModelConfig = DEFAULT_CONFIG

    @classmethod
    def for_race(
        cls,
        circuit: Circuit,
        factors: DegradationFactors,
        fuel_model: FuelConsumptionModel,
        track_temperature: float,
        config: ModelConfig = DEFAULT_CONFIG,
    ) -> "DegradationModel":
        fuel_model.validate()
        factors.validate()
        if not math.isfinite(track_temperature):
            raise NumericError("track_temperature", track_temperature, "must be finite")
        model = cls(
            base_laptime=base_lap_time(circuit, config),
            track_severity=circuit.characteristics.tire_severity,
            track_temperature=track_temperature,
            fuel_track_factor=circuit.characteristics.fuel_consumption,
            factors=factors,
            fuel_model=fuel_model,
            config=config,
        )
        logger.debug(
            f"{circuit.id}: base lap {model.base_laptime:.3f}s, "
            f"severity {model.track_severity:.2f}, track temp {track_temperature:.1f}°C"
        )
        return model

    def wear_rate(self, compound: TireCompound) -> float:
        return wear_rate(compound, self.track_temperature, self.track_severity, self.factors)

    def wear(self, compound: TireCompound, stint_age: float) -> float:
        return wear_fraction(
            compound, stint_age, self.track_temperature, self.track_severity, self.factors
        )

    def tire_state(self, compound: TireCompound, stint_age: float) -> TireState:
        return tire_state(
            compound,
            stint_age,
            self.track_temperature,
            self.track_severity,
            self.factors,
            self.config,
        )

    def lap_time_at_wear(self, compound: TireCompound, wear: float, fuel_kg: float) -> float:
        grip = grip_multiplier(compound, wear, self.config)
        return lap_time(self.base_laptime, grip, fuel_kg, self.fuel_model, self.config)

    def predict(self, compound: TireCompound, stint_age: int, fuel_kg: float) -> float:
        """Predict lap time at given stint age and fuel load."""
        return self.lap_time_at_wear(compound, self.wear(compound, stint_age), fuel_kg)

    def fuel_profile(self, starting_fuel: float, laps: int) -> np.ndarray:
        return fuel_profile(self.fuel_model, starting_fuel, laps, self.fuel_track_factor)

    def fuel_state(self, starting_fuel: float, elapsed_laps: int) -> FuelState:
        return fuel_state(self.fuel_model, starting_fuel, elapsed_laps, self.fuel_track_factor)
