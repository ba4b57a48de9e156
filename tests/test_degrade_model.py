"""Tests for degradation and fuel modeling."""

import math

import numpy as np
import pytest

from pitstrategy.config import DEFAULT_CONFIG, ModelConfig
from pitstrategy.degrade_model import (
    DegradationFactors,
    DegradationModel,
    FuelConsumptionModel,
    base_lap_time,
    fuel_profile,
    fuel_state,
    grip_multiplier,
    lap_time,
    tire_state,
    wear_fraction,
    wear_rate,
)
from pitstrategy.errors import InvalidConfigError, NumericError
from pitstrategy.tires import TireCompound
from pitstrategy.track import Circuit, TrackCharacteristics, monaco


def make_circuit(lap_record=None, average_speed=200.0, length=5000.0):
    return Circuit(
        id="test",
        name="Test Circuit",
        length=length,
        typical_race_laps=50,
        lap_record=lap_record,
        characteristics=TrackCharacteristics(
            average_speed=average_speed,
            maximum_speed=320.0,
            elevation_change=10.0,
            overtaking_difficulty=0.5,
        ),
    )


class TestTireWear:
    """Tests for the wear model."""

    def test_half_worn_after_typical_life(self):
        """Test nominal wear reaches 0.5 at the compound's typical life."""
        life = TireCompound.C3.characteristics.typical_life
        assert wear_fraction(TireCompound.C3, life) == pytest.approx(0.5)

    def test_wear_clamps_at_one(self):
        """Test ages beyond twice the typical life clamp instead of extrapolating."""
        assert wear_fraction(TireCompound.C5, 100) == 1.0
        assert wear_fraction(TireCompound.C5, 31) == 1.0

    def test_negative_age_rejected(self):
        with pytest.raises(InvalidConfigError):
            wear_fraction(TireCompound.C3, -1)

    def test_non_positive_factor_rejected(self):
        """Test a negative wear multiplier is a numeric error rather than negative wear."""
        factors = DegradationFactors(driving_style_factor=-1.0)
        with pytest.raises(NumericError) as excinfo:
            wear_fraction(TireCompound.C3, 10, factors=factors)
        assert excinfo.value.field == "factors.driving_style_factor"
        with pytest.raises(NumericError):
            DegradationModel.for_race(monaco(), factors, FuelConsumptionModel(), 30.0)

    def test_degenerate_factors_rejected(self):
        with pytest.raises(NumericError):
            DegradationFactors(temperature_sensitivity=-0.01).validate()
        with pytest.raises(NumericError):
            DegradationFactors(track_severity=math.nan).validate()
        with pytest.raises(NumericError):
            DegradationFactors(downforce_factor=0.0).validate()
        DegradationFactors().validate()

    def test_wear_non_decreasing_in_temperature(self):
        """Test hotter track wears tires at least as fast."""
        rates = [wear_rate(TireCompound.C2, track_temperature=t) for t in (15, 30, 40, 55)]
        assert rates == sorted(rates)
        assert rates[0] == rates[1]  # below reference temperature
        assert rates[3] > rates[1]

    def test_wear_non_decreasing_in_severity(self):
        rates = [wear_rate(TireCompound.C2, track_severity=s) for s in (0.5, 1.0, 1.5)]
        assert rates == sorted(rates)

    def test_factors_scale_wear_rate(self):
        """Test degradation factors multiply the nominal rate."""
        factors = DegradationFactors(driving_style_factor=1.2, downforce_factor=1.5)
        assert wear_rate(TireCompound.C4, factors=factors) == pytest.approx(
            wear_rate(TireCompound.C4) * 1.8
        )

    def test_grip_non_increasing_in_wear(self):
        grips = [grip_multiplier(TireCompound.C3, w) for w in np.linspace(0, 1, 11)]
        assert all(a >= b for a, b in zip(grips, grips[1:]))
        assert all(0 < g <= 1 for g in grips)

    def test_tire_state_pit_soon(self):
        """Test pit-soon flag once wear passes the threshold."""
        fresh = tire_state(TireCompound.C3, 1)
        assert not fresh.pit_soon
        assert fresh.laps_until_pit > 0

        # C3 nominal rate is 0.02/lap, so 0.7 wear is reached at lap 35
        worn = tire_state(TireCompound.C3, 36)
        assert worn.pit_soon
        assert worn.laps_until_pit == 0.0

    def test_tire_state_pit_soon_near_threshold(self):
        """Test pit-soon flag when fewer than min_remaining_laps remain."""
        state = tire_state(TireCompound.C3, 34)
        assert state.laps_until_pit < DEFAULT_CONFIG.min_remaining_laps
        assert state.pit_soon


class TestLapTime:
    """Tests for lap time prediction."""

    def test_base_lap_time_from_lap_record(self):
        circuit = make_circuit(lap_record=80.0)
        assert base_lap_time(circuit) == pytest.approx(80.0 * 1.03)

    def test_base_lap_time_from_average_speed(self):
        """Test fallback to length over average speed."""
        circuit = make_circuit(average_speed=180.0, length=5000.0)
        assert base_lap_time(circuit) == pytest.approx(100.0)

    def test_zero_average_speed_raises(self):
        with pytest.raises(NumericError):
            base_lap_time(make_circuit(average_speed=0.0))

    def test_lap_time_grows_with_fuel(self):
        fuel_model = FuelConsumptionModel()
        light = lap_time(90.0, 0.9, 10.0, fuel_model)
        heavy = lap_time(90.0, 0.9, 100.0, fuel_model)
        assert heavy > light

    def test_prediction_increases_with_age(self):
        """Test that predicted lap time increases with stint age."""
        model = DegradationModel.for_race(
            monaco(), DegradationFactors(), FuelConsumptionModel(), 30.0
        )
        times = [model.predict(TireCompound.C3, age, 50.0) for age in (1, 10, 20, 30)]
        assert all(a < b for a, b in zip(times, times[1:]))

    def test_custom_config_changes_sensitivity(self):
        model = DegradationModel.for_race(
            monaco(), DegradationFactors(), FuelConsumptionModel(), 30.0
        )
        sensitive = DegradationModel.for_race(
            monaco(),
            DegradationFactors(),
            FuelConsumptionModel(),
            30.0,
            ModelConfig(lap_time_sensitivity=0.3),
        )
        assert sensitive.predict(TireCompound.C3, 20, 0.0) > model.predict(
            TireCompound.C3, 20, 0.0
        )


class TestFuelModel:
    """Tests for fuel consumption."""

    def test_non_positive_base_rate_raises(self):
        """Test degenerate burn coefficient is a numeric error."""
        with pytest.raises(NumericError):
            FuelConsumptionModel(base_rate=0.0).validate()
        with pytest.raises(NumericError):
            DegradationModel.for_race(
                monaco(), DegradationFactors(), FuelConsumptionModel(base_rate=-1.0), 30.0
            )

    def test_non_finite_penalty_raises(self):
        with pytest.raises(NumericError):
            FuelConsumptionModel(penalty_per_kg=math.inf).validate()

    def test_fuel_profile_decreasing_and_clamped(self):
        """Test fuel never increases and never goes negative."""
        profile = fuel_profile(FuelConsumptionModel(), 10.0, 20)
        assert profile[0] == 10.0
        assert np.all(np.diff(profile) <= 0)
        assert profile.min() >= 0.0
        assert profile[-1] == 0.0

    def test_fuel_state_penalty_linear(self):
        fuel_model = FuelConsumptionModel()
        state = fuel_state(fuel_model, 100.0, 10)
        assert state.consumed + state.remaining == pytest.approx(100.0)
        assert state.lap_time_penalty == pytest.approx(fuel_model.penalty_per_kg * state.remaining)

    def test_heavier_car_burns_more(self):
        fuel_model = FuelConsumptionModel()
        assert fuel_model.consumption_per_lap(100.0) > fuel_model.consumption_per_lap(10.0)

    def test_laps_remaining(self):
        """Test fuel below the buffer gives no laps and more fuel gives more laps."""
        fuel_model = FuelConsumptionModel()
        assert fuel_model.laps_remaining(0.5) == 0.0
        assert fuel_model.laps_remaining(50.0) > fuel_model.laps_remaining(20.0) > 0.0

    def test_fuel_saving_needed(self):
        fuel_model = FuelConsumptionModel()
        assert fuel_model.fuel_saving_needed(110.0, 10) is None
        assert fuel_model.fuel_saving_needed(10.0, 50) > 0
