"""Tire compounds and their nominal characteristics.

C5 is the softest dry compound (most grip, shortest life) and C0 the hardest.
Intermediates and wets are only legal once the track is wet.
"""

from dataclasses import dataclass
from enum import Enum


class TireCompound(str, Enum):
    """Pirelli compound designations."""

    C0 = "C0"
    C1 = "C1"
    C2 = "C2"
    C3 = "C3"
    C4 = "C4"
    C5 = "C5"
    INTERMEDIATE = "INTERMEDIATE"
    WET = "WET"

    @property
    def is_dry(self) -> bool:
        return self not in (TireCompound.INTERMEDIATE, TireCompound.WET)

    @property
    def is_wet(self) -> bool:
        return not self.is_dry

    @property
    def characteristics(self) -> "TireCharacteristics":
        return TIRE_CATALOG[self]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TireCharacteristics:
    """Nominal behaviour of a fresh set of tires."""

    compound: TireCompound
    grip_level: float  # baseline grip multiplier, 0-1
    typical_life: int  # laps at nominal severity
    optimal_temp_range: tuple[float, float]  # tire surface, °C


TIRE_CATALOG: dict[TireCompound, TireCharacteristics] = {
    TireCompound.C0: TireCharacteristics(TireCompound.C0, 0.70, 40, (85.0, 105.0)),
    TireCompound.C1: TireCharacteristics(TireCompound.C1, 0.75, 35, (90.0, 110.0)),
    TireCompound.C2: TireCharacteristics(TireCompound.C2, 0.80, 30, (90.0, 110.0)),
    TireCompound.C3: TireCharacteristics(TireCompound.C3, 0.85, 25, (92.0, 112.0)),
    TireCompound.C4: TireCharacteristics(TireCompound.C4, 0.90, 20, (95.0, 115.0)),
    TireCompound.C5: TireCharacteristics(TireCompound.C5, 0.95, 15, (95.0, 115.0)),
    TireCompound.INTERMEDIATE: TireCharacteristics(
        TireCompound.INTERMEDIATE, 0.75, 30, (70.0, 90.0)
    ),
    TireCompound.WET: TireCharacteristics(TireCompound.WET, 0.65, 35, (60.0, 80.0)),
}

DRY_COMPOUNDS = tuple(c for c in TireCompound if c.is_dry)
WET_COMPOUNDS = tuple(c for c in TireCompound if c.is_wet)
