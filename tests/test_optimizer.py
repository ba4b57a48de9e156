"""Tests for pit strategy optimization."""

from dataclasses import replace

import pytest

from pitstrategy.cancellation import CancellationToken
from pitstrategy.config import ModelConfig
from pitstrategy.degrade_model import DegradationFactors, DegradationModel, FuelConsumptionModel
from pitstrategy.errors import (
    InfeasibleError,
    InvalidConfigError,
    NumericError,
    OperationCancelledError,
)
from pitstrategy.optimizer import (
    CompetitorState,
    OptimizationConfig,
    calculate_pit_window,
    compare_strategies,
    estimate_time_loss,
    optimize,
    score_compound,
    select_optimal_compound,
)
from pitstrategy.strategy import FuelStrategy, PitStop, PitStopReason
from pitstrategy.tires import DRY_COMPOUNDS, TireCompound
from pitstrategy.track import Circuit, TrackCharacteristics, famous_circuits, monaco, silverstone


def make_circuit(laps: int = 30, severity: float = 1.0) -> Circuit:
    return Circuit(
        id="test",
        name="Test Circuit",
        length=5000.0,
        typical_race_laps=laps,
        lap_record=80.0,
        characteristics=TrackCharacteristics(
            average_speed=220.0,
            maximum_speed=320.0,
            elevation_change=10.0,
            overtaking_difficulty=0.5,
            tire_severity=severity,
        ),
    )


def make_config(**overrides) -> OptimizationConfig:
    params = dict(
        total_laps=30,
        circuit=make_circuit(),
        available_compounds=(TireCompound.C3, TireCompound.C4, TireCompound.C5),
        pit_lane_time_loss=20.0,
        tire_change_time=2.5,
        starting_fuel=60.0,
    )
    params.update(overrides)
    return OptimizationConfig(**params)


def monaco_config(**overrides) -> OptimizationConfig:
    params = dict(
        total_laps=78,
        circuit=monaco(),
        available_compounds=(TireCompound.C1, TireCompound.C2, TireCompound.C3),
        pit_lane_time_loss=22.0,
        tire_change_time=0.0,
        starting_fuel=110.0,
    )
    params.update(overrides)
    return OptimizationConfig(**params)


class TestOptimize:
    """Tests for the dynamic-programming optimizer."""

    def test_monaco_one_stop_minimum(self):
        """Test a Monaco race with a mandatory compound change."""
        config = monaco_config()
        strategy = optimize(config)

        base = DegradationModel.for_race(
            config.circuit, DegradationFactors(), FuelConsumptionModel(), 30.0
        ).base_laptime

        assert strategy.num_pit_stops >= 1
        assert len(strategy.compounds_used) >= 2
        assert strategy.validate(78)
        assert strategy.predicted_race_time > 78 * base
        assert strategy.pit_stops[0].reason == PitStopReason.MANDATORY
        assert 0.0 <= strategy.confidence <= 1.0

    def test_pit_stops_strictly_increasing_and_cover_race(self):
        strategy = optimize(monaco_config())
        laps = [stop.lap for stop in strategy.pit_stops]
        assert laps == sorted(set(laps))
        assert all(1 <= lap < 78 for lap in laps)

        stints = strategy.stints(78)
        assert sum(stint.length for stint in stints) == 78
        assert len(strategy.expected_lap_times) == len(stints)
        assert [len(times) for times in strategy.expected_lap_times] == [s.length for s in stints]

    def test_predicted_time_matches_lap_times(self):
        """Test predicted time is lap times plus pit losses."""
        config = make_config()
        strategy = optimize(config)
        lap_sum = sum(sum(times) for times in strategy.expected_lap_times)
        assert strategy.predicted_race_time == pytest.approx(lap_sum + strategy.total_pit_loss)

    def test_idempotent(self):
        """Test two runs differ only in creation time."""
        config = monaco_config()
        first = optimize(config)
        second = optimize(config)

        assert first.id == second.id
        assert replace(first, metadata=second.metadata) == second

    def test_compound_order_does_not_change_result(self):
        a = optimize(make_config())
        b = optimize(
            make_config(
                available_compounds=(TireCompound.C5, TireCompound.C3, TireCompound.C4)
            )
        )
        assert a.id == b.id

    def test_pit_loss_monotonic(self):
        """Test a dearer pit stop never gives a faster race or more stops."""
        strategies = [
            optimize(make_config(pit_lane_time_loss=loss, tire_change_time=0.0))
            for loss in (0.0, 1.0, 2.0, 5.0, 10.0, 20.0, 40.0, 80.0)
        ]
        times = [s.predicted_race_time for s in strategies]
        stops = [s.num_pit_stops for s in strategies]
        assert all(a <= b for a, b in zip(times, times[1:]))
        assert all(a >= b for a, b in zip(stops, stops[1:]))
        assert stops[0] > stops[-1]

    def test_no_compound_change_allows_zero_stops(self):
        """Test a single-compound race equals the sum of its predicted laps."""
        config = make_config(
            total_laps=10,
            available_compounds=(TireCompound.C1,),
            require_compound_change=False,
        )
        strategy = optimize(config)

        model = DegradationModel.for_race(
            config.circuit, DegradationFactors(), FuelConsumptionModel(), 30.0
        )
        fuel = model.fuel_profile(config.starting_fuel, 10)
        expected = sum(model.predict(TireCompound.C1, lap, fuel[lap - 1]) for lap in range(1, 11))

        assert strategy.num_pit_stops == 0
        assert strategy.confidence == 1.0
        assert strategy.predicted_race_time == pytest.approx(expected)

    def test_stints_stay_below_failure_threshold(self):
        """Test no stint is long enough to destroy its tires."""
        config = make_config(
            total_laps=60,
            available_compounds=(TireCompound.C4, TireCompound.C5),
            max_pit_stops=1,
        )
        strategy = optimize(config)
        model = DegradationModel.for_race(
            config.circuit, DegradationFactors(), FuelConsumptionModel(), 30.0
        )
        for stint in strategy.stints(60):
            assert stint.length * model.wear_rate(stint.compound) < 1.0

    def test_min_stint_length_respected(self):
        strategy = optimize(make_config(min_stint_length=8, min_pit_stops=2))
        assert strategy.num_pit_stops >= 2
        assert all(stint.length >= 8 for stint in strategy.stints(30))

    def test_min_pit_stops_respected(self):
        strategy = optimize(make_config(min_pit_stops=2, max_pit_stops=3))
        assert strategy.num_pit_stops >= 2

    def test_pruning_does_not_change_optimum(self):
        """Test dominated-state pruning is exact."""
        config = make_config(total_laps=20)
        pruned = optimize(config)
        full = optimize(config, ModelConfig(prune_dominated=False))
        assert pruned.predicted_race_time == pytest.approx(full.predicted_race_time)

    def test_wet_race_uses_wet_compounds(self):
        config = make_config(
            available_compounds=(TireCompound.C3, TireCompound.INTERMEDIATE, TireCompound.WET),
            wet_race=True,
        )
        strategy = optimize(config)
        assert strategy.compounds_used <= {TireCompound.INTERMEDIATE, TireCompound.WET}

    def test_competitor_pit_marks_undercut(self):
        """Test a stop just before a rival's stop is tagged as an undercut."""
        config = make_config(min_pit_stops=2)
        baseline = optimize(config)
        second_stop = baseline.pit_stops[1].lap
        rival = CompetitorState(
            position=2,
            current_compound=TireCompound.C4,
            estimated_pit_lap=second_stop + 2,
        )
        strategy = optimize(replace(config, competitors_ahead=(rival,)))
        assert strategy.pit_stops[1].reason == PitStopReason.UNDERCUT

    def test_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            optimize(make_config(), cancel=token)


class TestOptimizeErrors:
    """Tests for infeasible and invalid optimizer inputs."""

    def test_empty_compounds_infeasible(self):
        with pytest.raises(InfeasibleError):
            optimize(make_config(available_compounds=()))

    def test_only_wet_compounds_in_dry_race(self):
        with pytest.raises(InfeasibleError):
            optimize(
                make_config(available_compounds=(TireCompound.INTERMEDIATE, TireCompound.WET))
            )

    def test_single_compound_with_required_change(self):
        with pytest.raises(InfeasibleError):
            optimize(make_config(available_compounds=(TireCompound.C3,)))

    def test_race_too_long_for_tires(self):
        """Test a race no stint sequence can finish."""
        with pytest.raises(InfeasibleError):
            optimize(
                make_config(
                    total_laps=100,
                    available_compounds=(TireCompound.C4, TireCompound.C5),
                    max_pit_stops=1,
                )
            )

    def test_min_above_max_stops(self):
        with pytest.raises(InvalidConfigError):
            optimize(make_config(min_pit_stops=3, max_pit_stops=2))

    def test_zero_laps(self):
        with pytest.raises(InvalidConfigError):
            optimize(make_config(total_laps=0))

    def test_negative_pit_loss(self):
        with pytest.raises(InvalidConfigError):
            optimize(make_config(pit_lane_time_loss=-1.0))

    def test_negative_degradation_factor(self):
        """Test a negative wear multiplier fails instead of planning on bogus wear."""
        config = make_config(
            total_laps=40, degradation_factors=DegradationFactors(temperature_factor=-0.5)
        )
        with pytest.raises(NumericError) as excinfo:
            optimize(config)
        assert excinfo.value.field == "factors.temperature_factor"

    def test_error_names_field(self):
        with pytest.raises(InfeasibleError) as excinfo:
            optimize(make_config(available_compounds=()))
        assert excinfo.value.field == "available_compounds"
        assert "available_compounds" in str(excinfo.value)


class TestPitWindow:
    """Tests for pit window calculation."""

    def test_window_ordered(self):
        window = calculate_pit_window(1, TireCompound.C3, make_config(total_laps=60))
        assert window.earliest_lap <= window.optimal_start <= window.optimal_end
        assert window.optimal_end <= window.latest_lap <= 59
        # C3 reaches 70% wear after ~35 laps at nominal conditions
        assert 34 <= window.earliest_lap <= 36

    def test_window_shifts_with_tire_age(self):
        config = make_config(total_laps=60)
        fresh = calculate_pit_window(10, TireCompound.C3, config, tire_age=0)
        used = calculate_pit_window(10, TireCompound.C3, config, tire_age=9)
        assert used.earliest_lap < fresh.earliest_lap

    def test_window_clamped_to_race(self):
        window = calculate_pit_window(1, TireCompound.C1, make_config(total_laps=20))
        assert window.latest_lap == 19
        assert window.earliest_lap == 19

    def test_severe_track_constraint(self):
        config = make_config(circuit=make_circuit(severity=1.3), total_laps=60)
        window = calculate_pit_window(1, TireCompound.C3, config)
        assert "High tire degradation track" in window.constraints


class TestCompareStrategies:
    """Tests for strategy comparison."""

    def test_compare_with_itself(self):
        config = make_config()
        strategy = optimize(config)
        comparison = compare_strategies(strategy, strategy, config)
        assert comparison.time_delta == 0.0
        assert comparison.risk_delta == 0.0
        assert comparison.breakdown.pit_loss_difference == 0.0

    def test_extra_stop_costs_pit_loss(self):
        config = make_config(max_pit_stops=1)
        one_stop = optimize(config)
        assert one_stop.num_pit_stops == 1
        extra = PitStop(
            lap=one_stop.pit_stops[0].lap + 1,
            compound=one_stop.starting_compound,
            pit_loss=config.pit_loss,
        )
        two_stop = one_stop.with_pit_stops(one_stop.pit_stops[:1] + (extra,))

        comparison = compare_strategies(two_stop, one_stop, config)
        assert comparison.breakdown.pit_loss_difference == pytest.approx(22.5)
        assert comparison.risk_delta > 0

    def test_fuel_efficiency_difference(self):
        """Test a lighter starting load burns less fuel per lap."""
        config = make_config()
        heavy = optimize(config)
        light = replace(heavy, fuel_strategy=FuelStrategy(starting_fuel=30.0))

        comparison = compare_strategies(light, heavy, config)
        assert comparison.breakdown.fuel_efficiency_difference > 0.0
        assert compare_strategies(heavy, heavy, config).breakdown.fuel_efficiency_difference == 0.0


class TestTimeLoss:
    """Tests for pit stop time loss estimates."""

    def test_late_stop_costs_base_loss(self):
        """Test a final-lap stop costs the lane loss plus the leader's position penalty."""
        assert estimate_time_loss(make_config(), 30) == pytest.approx(22.5 + 1.5)

    def test_early_stop_costs_more(self):
        config = make_config()
        losses = [estimate_time_loss(config, lap) for lap in (1, 10, 20, 30)]
        assert all(a > b for a, b in zip(losses, losses[1:]))
        assert losses[0] == pytest.approx(22.5 * (1.0 + (1.0 - 1 / 30) * 0.1) + 1.5)

    def test_position_penalty(self):
        losses = [
            estimate_time_loss(make_config(current_position=position), 30)
            for position in (3, 4, 10, 11)
        ]
        assert losses == pytest.approx([24.0, 23.5, 23.5, 23.0])

    def test_lap_outside_race(self):
        with pytest.raises(InvalidConfigError):
            estimate_time_loss(make_config(), 0)
        with pytest.raises(InvalidConfigError):
            estimate_time_loss(make_config(), 31)


class TestSelectCompound:
    """Tests for compound selection by grip, life and thermal scores."""

    def test_hot_track_heavy_fuel(self):
        """Test a heavy car on a hot day avoids the softest compound."""
        choice = select_optimal_compound(
            monaco(), (TireCompound.C3, TireCompound.C4, TireCompound.C5), 40.0, 100.0, 20
        )
        assert choice in (TireCompound.C3, TireCompound.C4)

    def test_cold_track(self):
        compounds = (TireCompound.C3, TireCompound.C4, TireCompound.C5)
        assert select_optimal_compound(monaco(), compounds, 15.0, 50.0, 15) in compounds

    def test_long_stint_prefers_hard_compound(self):
        choice = select_optimal_compound(
            silverstone(),
            (TireCompound.C1, TireCompound.C2, TireCompound.C3),
            25.0,
            110.0,
            30,
            DegradationFactors(track_severity=1.2),
        )
        assert choice in (TireCompound.C1, TireCompound.C2)

    def test_order_of_compounds_irrelevant(self):
        forward = (TireCompound.C1, TireCompound.C2, TireCompound.C3)
        assert select_optimal_compound(monaco(), forward, 30.0, 80.0, 20) == (
            select_optimal_compound(monaco(), forward[::-1], 30.0, 80.0, 20)
        )

    def test_scores_bounded_on_reference_circuits(self):
        for circuit in famous_circuits():
            for compound in DRY_COMPOUNDS:
                score = score_compound(compound, circuit, 30.0, 80.0, 20)
                assert 0.0 < score <= 1.0

    def test_empty_compounds_infeasible(self):
        with pytest.raises(InfeasibleError):
            select_optimal_compound(monaco(), (), 30.0, 80.0, 20)

    def test_zero_stint_rejected(self):
        with pytest.raises(InvalidConfigError):
            select_optimal_compound(monaco(), (TireCompound.C3,), 30.0, 80.0, 0)
