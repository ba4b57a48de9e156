"""Circuit reference data.

Circuits are immutable and supplied fully formed by external loaders; the
handful of well-known tracks below exist as reference inputs.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import ConfigDict, with_config


@dataclass(frozen=True)
class TrackCharacteristics:
    """Physical characteristics that drive pace, wear and fuel burn."""

    average_speed: float  # km/h
    maximum_speed: float  # km/h
    elevation_change: float  # metres
    overtaking_difficulty: float  # 0 (easy) - 1 (Monaco)
    tire_severity: float = 1.0  # tire-wear factor, 1.0 = average track
    fuel_consumption: float = 1.0  # fuel factor, 1.0 = average track
    downforce_level: float = 0.5
    weather_variability: float = 0.5  # 0 (stable) - 1 (Spa)


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class Circuit:
    """A race circuit."""

    id: str
    name: str
    length: float  # metres per lap
    typical_race_laps: int
    characteristics: TrackCharacteristics
    country: str = ""
    num_turns: int = 0
    lap_record: Optional[float] = None  # seconds


def monaco() -> Circuit:
    return Circuit(
        id="monaco",
        name="Circuit de Monaco",
        country="Monaco",
        length=3337.0,
        num_turns=19,
        lap_record=70.246,
        typical_race_laps=78,
        characteristics=TrackCharacteristics(
            average_speed=160.0,
            maximum_speed=290.0,
            elevation_change=42.0,
            overtaking_difficulty=0.95,
            tire_severity=0.8,
            fuel_consumption=0.85,
            downforce_level=0.95,
            weather_variability=0.3,
        ),
    )


def spa() -> Circuit:
    return Circuit(
        id="spa",
        name="Circuit de Spa-Francorchamps",
        country="Belgium",
        length=7004.0,
        num_turns=19,
        lap_record=103.458,
        typical_race_laps=44,
        characteristics=TrackCharacteristics(
            average_speed=237.0,
            maximum_speed=340.0,
            elevation_change=105.0,
            overtaking_difficulty=0.4,
            tire_severity=1.2,
            fuel_consumption=1.3,
            downforce_level=0.6,
            weather_variability=0.9,
        ),
    )


def silverstone() -> Circuit:
    return Circuit(
        id="silverstone",
        name="Silverstone Circuit",
        country="United Kingdom",
        length=5891.0,
        num_turns=18,
        lap_record=86.089,
        typical_race_laps=52,
        characteristics=TrackCharacteristics(
            average_speed=230.0,
            maximum_speed=330.0,
            elevation_change=30.0,
            overtaking_difficulty=0.5,
            tire_severity=1.1,
            fuel_consumption=1.1,
            downforce_level=0.7,
            weather_variability=0.7,
        ),
    )


def monza() -> Circuit:
    return Circuit(
        id="monza",
        name="Autodromo Nazionale di Monza",
        country="Italy",
        length=5793.0,
        num_turns=11,
        lap_record=81.046,
        typical_race_laps=53,
        characteristics=TrackCharacteristics(
            average_speed=264.0,
            maximum_speed=360.0,
            elevation_change=28.0,
            overtaking_difficulty=0.3,
            tire_severity=0.9,
            fuel_consumption=1.4,
            downforce_level=0.3,
            weather_variability=0.4,
        ),
    )


def suzuka() -> Circuit:
    return Circuit(
        id="suzuka",
        name="Suzuka International Racing Course",
        country="Japan",
        length=5807.0,
        num_turns=18,
        lap_record=87.435,
        typical_race_laps=53,
        characteristics=TrackCharacteristics(
            average_speed=226.0,
            maximum_speed=315.0,
            elevation_change=43.0,
            overtaking_difficulty=0.7,
            tire_severity=1.3,
            fuel_consumption=1.2,
            downforce_level=0.8,
            weather_variability=0.6,
        ),
    )


def famous_circuits() -> list[Circuit]:
    return [monaco(), spa(), silverstone(), monza(), suzuka()]
