"""Configuration module for the pit strategy optimizer and race simulator.

Model constants shared by the degradation model, the optimizer and the
simulator live here so that callers can tune them without touching the
algorithms.
"""

import logging
from dataclasses import dataclass

from pitstrategy.errors import InvalidConfigError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    """Tunable constants of the strategy model.

    Physics reasoning: lap time grows with lost grip and carried fuel, tire
    wear grows with age, track severity and heat. The numbers below set how
    strongly each effect shows up in predicted lap times.
    """

    # Lap time model
    race_pace_factor: float = 1.03  # race pace relative to lap record
    lap_time_sensitivity: float = 0.1  # fraction of base lap lost per unit grip deficit
    wear_grip_loss: float = 0.3  # grip lost at 100% wear

    # Tire life thresholds
    pit_soon_wear: float = 0.7  # wear fraction that opens the pit window
    min_remaining_laps: int = 2  # flag "pit soon" below this many laps left
    failure_wear_threshold: float = 1.0  # accumulated wear that ends the race (DNF)

    # Optimizer
    confidence_scale: float = 5.0  # seconds; spread giving ~63% confidence
    tie_tolerance: float = 1e-6  # seconds; terminal times closer than this tie
    prune_dominated: bool = True

    # Simulator noise shaping
    wear_noise_gain: float = 1.0  # lap noise growth per unit wear
    min_lap_factor: float = 0.5  # floor on the random lap time multiplier
    low_fuel_warning: float = 5.0  # kg

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.race_pace_factor <= 0:
            raise InvalidConfigError("race_pace_factor", self.race_pace_factor, "must be positive")
        if self.lap_time_sensitivity < 0:
            raise InvalidConfigError(
                "lap_time_sensitivity", self.lap_time_sensitivity, "cannot be negative"
            )
        if not 0 <= self.wear_grip_loss < 1:
            raise InvalidConfigError("wear_grip_loss", self.wear_grip_loss, "must be in [0, 1)")
        if not 0 < self.pit_soon_wear <= 1:
            raise InvalidConfigError("pit_soon_wear", self.pit_soon_wear, "must be in (0, 1]")
        if self.min_remaining_laps < 0:
            raise InvalidConfigError(
                "min_remaining_laps", self.min_remaining_laps, "cannot be negative"
            )
        if self.failure_wear_threshold <= 0:
            raise InvalidConfigError(
                "failure_wear_threshold", self.failure_wear_threshold, "must be positive"
            )
        if self.confidence_scale <= 0:
            raise InvalidConfigError("confidence_scale", self.confidence_scale, "must be positive")
        if not 0 < self.min_lap_factor <= 1:
            raise InvalidConfigError("min_lap_factor", self.min_lap_factor, "must be in (0, 1]")


DEFAULT_CONFIG = ModelConfig()
