"""Weather forecasts and their effect on lap time and variance.

Forecasts arrive fully formed from a weather service; this module only
interprets them: which condition applies at a given race time, how volatile
that makes lap times, and how much a compound loses in those conditions.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import ConfigDict, with_config

from pitstrategy.tires import TireCompound


class WeatherCondition(str, Enum):
    DRY = "DRY"
    PARTLY_CLOUDY = "PARTLY_CLOUDY"
    CLOUDY = "CLOUDY"
    LIGHT_RAIN = "LIGHT_RAIN"
    HEAVY_RAIN = "HEAVY_RAIN"

    @property
    def is_wet(self) -> bool:
        return self in (WeatherCondition.LIGHT_RAIN, WeatherCondition.HEAVY_RAIN)


class RecommendedTire(str, Enum):
    DRY = "DRY"
    INTERMEDIATE = "INTERMEDIATE"
    WET = "WET"


# Relative lap-time volatility per condition (dry = 1.0)
CONDITION_VOLATILITY = {
    WeatherCondition.DRY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 1.05,
    WeatherCondition.CLOUDY: 1.1,
    WeatherCondition.LIGHT_RAIN: 1.5,
    WeatherCondition.HEAVY_RAIN: 2.0,
}


@dataclass(frozen=True)
class SectorWeather:
    sector: int  # 1-3
    condition: WeatherCondition
    rain_intensity: float  # mm/hour
    track_temp: float  # °C
    grip_level: float  # 0-1


@dataclass(frozen=True)
class WeatherPrediction:
    minutes_ahead: int
    condition: WeatherCondition
    rain_probability: float
    confidence: float


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class WeatherForecast:
    """Weather outlook for the race.

    Attributes:
        overall_condition: Condition at the start of the race.
        air_temperature: °C
        track_temperature: °C, drives the temperature term of tire wear.
        humidity: 0-1
        wind_speed: km/h
        rain_probability: Chance of rain at the start, 0-1.
        rainfall_intensity: mm/hour
        sector_conditions: Per-sector snapshot, may be empty.
        predictions: Changes expected ``minutes_ahead`` of the start.
    """

    overall_condition: WeatherCondition = WeatherCondition.DRY
    air_temperature: float = 25.0
    track_temperature: float = 30.0
    humidity: float = 0.5
    wind_speed: float = 10.0
    rain_probability: float = 0.0
    rainfall_intensity: float = 0.0
    sector_conditions: tuple[SectorWeather, ...] = ()
    predictions: tuple[WeatherPrediction, ...] = ()

    def has_rain_anywhere(self) -> bool:
        return any(s.rain_intensity > 0.0 for s in self.sector_conditions)

    def max_rain_intensity(self) -> float:
        return max((s.rain_intensity for s in self.sector_conditions), default=0.0)

    def average_grip_level(self) -> float:
        if not self.sector_conditions:
            return 1.0
        return sum(s.grip_level for s in self.sector_conditions) / len(self.sector_conditions)

    def rain_expected_in(self, minutes: int) -> bool:
        return any(
            p.rain_probability > 0.5 for p in self.predictions if p.minutes_ahead <= minutes
        )

    def recommended_compound(self) -> RecommendedTire:
        if self.max_rain_intensity() > 5.0:
            return RecommendedTire.WET
        if self.max_rain_intensity() > 0.5:
            return RecommendedTire.INTERMEDIATE
        if self.rain_expected_in(10) and self.rain_probability > 0.7:
            return RecommendedTire.INTERMEDIATE
        return RecommendedTire.DRY

    def outlook_at(self, minutes: float) -> tuple[WeatherCondition, float]:
        """Condition and rain probability in force ``minutes`` into the race."""
        condition, rain_probability = self.overall_condition, self.rain_probability
        for prediction in sorted(self.predictions, key=lambda p: p.minutes_ahead):
            if prediction.minutes_ahead > minutes:
                break
            condition, rain_probability = prediction.condition, prediction.rain_probability
        return condition, rain_probability

    def condition_at(self, minutes: float) -> WeatherCondition:
        return self.outlook_at(minutes)[0]

    def volatility_at(self, minutes: float, weather_variability: float = 0.5) -> float:
        """Multiplier on lap-time and wear noise ``minutes`` into the race.

        1.0 for a settled dry race; grows with wet conditions, with the chance
        of rain weighted by how changeable the circuit's weather is, and with
        low-grip sectors.
        """
        condition, rain_probability = self.outlook_at(minutes)
        volatility = CONDITION_VOLATILITY[condition] * (1.0 + weather_variability * rain_probability)
        if self.sector_conditions:
            volatility *= 1.0 + 0.5 * (1.0 - self.average_grip_level())
        return volatility


def weather_lap_penalty(condition: WeatherCondition, compound: TireCompound) -> float:
    """Seconds lost per lap running ``compound`` in ``condition``."""
    if compound.is_dry:
        if condition == WeatherCondition.LIGHT_RAIN:
            return 5.0
        if condition == WeatherCondition.HEAVY_RAIN:
            return 15.0
        return 0.0

    if compound == TireCompound.INTERMEDIATE:
        if condition == WeatherCondition.LIGHT_RAIN:
            return 0.0
        if condition == WeatherCondition.HEAVY_RAIN:
            return 3.0
        if condition == WeatherCondition.DRY:
            return 2.5
        return 1.0

    # full wets
    if condition == WeatherCondition.HEAVY_RAIN:
        return 0.0
    if condition == WeatherCondition.DRY:
        return 5.0
    if condition == WeatherCondition.CLOUDY:
        return 4.0
    return 1.0


def is_wrong_tire(condition: WeatherCondition, compound: TireCompound) -> bool:
    if condition == WeatherCondition.LIGHT_RAIN:
        return compound.is_dry
    if condition == WeatherCondition.HEAVY_RAIN:
        return compound != TireCompound.WET
    return False
