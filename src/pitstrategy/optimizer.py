"""Pit stop strategy optimization by dynamic programming.

The search walks the race lap by lap. A state is (compound, stops made, tire
age) at the end of a lap, labelled with the cheapest cumulative time that
reaches it. From each state the car either stays out for another lap or pits
into a different compound. Lap cost only depends on compound, tire age and
lap (fuel load), so two labels in the same (lap, compound, stops) bucket can
be compared directly: the one with older tires and no better time can never
lead to a faster race and is dropped.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from pydantic import ConfigDict, with_config

from pitstrategy import __version__
from pitstrategy.cancellation import CancellationToken
from pitstrategy.config import DEFAULT_CONFIG, ModelConfig
from pitstrategy.degrade_model import (
    MAX_FUEL_CAPACITY,
    DegradationFactors,
    DegradationModel,
    FuelConsumptionModel,
    fuel_multiplier,
)
from pitstrategy.errors import InfeasibleError, InvalidConfigError, NumericError
from pitstrategy.strategy import (
    ErsDeploymentPlan,
    FuelStrategy,
    PitStop,
    PitStopReason,
    RaceStrategy,
    StrategyMetadata,
)
from pitstrategy.tires import DRY_COMPOUNDS, WET_COMPOUNDS, TireCompound
from pitstrategy.track import Circuit

logger = logging.getLogger(__name__)

OPTIMIZER_VERSION = f"pitstrategy-dp/{__version__}"
_STRATEGY_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "pitstrategy.optimizer")
_COMPOUND_ORDER = {compound: i for i, compound in enumerate(TireCompound)}


@dataclass(frozen=True)
class CompetitorState:
    """Competitor state for undercut/overcut analysis."""

    position: int
    current_compound: TireCompound
    tire_age: int = 0
    estimated_pit_lap: Optional[int] = None
    gap_seconds: float = 0.0


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class OptimizationConfig:
    """Static race parameters for one optimization."""

    total_laps: int
    circuit: Circuit
    available_compounds: tuple[TireCompound, ...]
    pit_lane_time_loss: float = 20.0  # seconds
    tire_change_time: float = 2.5  # seconds
    current_position: int = 1
    competitors_ahead: tuple[CompetitorState, ...] = ()
    degradation_factors: DegradationFactors = field(default_factory=DegradationFactors)
    fuel_model: FuelConsumptionModel = field(default_factory=FuelConsumptionModel)
    starting_fuel: float = MAX_FUEL_CAPACITY  # kg
    track_temperature: float = 30.0  # °C

    # Regulations
    min_pit_stops: int = 0
    max_pit_stops: int = 3
    require_compound_change: bool = True
    wet_race: bool = False
    min_stint_length: int = 1

    ers_plan: Optional[ErsDeploymentPlan] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "available_compounds", tuple(self.available_compounds))
        object.__setattr__(self, "competitors_ahead", tuple(self.competitors_ahead))

    @property
    def pit_loss(self) -> float:
        return self.pit_lane_time_loss + self.tire_change_time

    @property
    def required_stops(self) -> int:
        """Fewest stops a legal strategy may make.

        Every stop changes compound, so the mandatory compound change of a
        dry race is the same as requiring one stop.
        """
        change_required = self.require_compound_change and not self.wet_race
        return max(self.min_pit_stops, 1 if change_required else 0)


@dataclass(frozen=True)
class PitWindow:
    """Pit window constraints."""

    earliest_lap: int
    latest_lap: int
    optimal_start: int
    optimal_end: int
    constraints: tuple[str, ...] = ()

    def contains(self, lap: int) -> bool:
        return self.earliest_lap <= lap <= self.latest_lap


@dataclass(frozen=True)
class ComparisonBreakdown:
    tire_wear_difference: float
    pit_loss_difference: float
    fuel_efficiency_difference: float
    track_position_risk: float
    overtaking_opportunities: int


@dataclass(frozen=True)
class StrategyComparison:
    """Head-to-head comparison between two strategies."""

    strategy_a: str
    strategy_b: str
    time_delta: float  # A - B, negative = A is faster
    risk_delta: float  # positive = A is riskier
    breakdown: ComparisonBreakdown


class _Label:
    """Cheapest known way to reach a DP state."""

    __slots__ = ("lap", "compound", "stops", "age", "time", "first_pit", "parent", "pitted")

    def __init__(self, lap, compound, stops, age, time, first_pit, parent, pitted):
        self.lap = lap
        self.compound = compound
        self.stops = stops
        self.age = age
        self.time = time
        self.first_pit = first_pit
        self.parent = parent
        self.pitted = pitted

    @property
    def rank(self) -> tuple[float, float]:
        return (self.time, self.first_pit)


def validate_config(config: OptimizationConfig) -> list[TireCompound]:
    """Validate configuration and return the compounds the search may use."""
    if config.total_laps <= 0:
        raise InvalidConfigError("total_laps", config.total_laps, "must be greater than 0")
    if config.pit_lane_time_loss < 0:
        raise InvalidConfigError(
            "pit_lane_time_loss", config.pit_lane_time_loss, "cannot be negative"
        )
    if config.tire_change_time < 0:
        raise InvalidConfigError("tire_change_time", config.tire_change_time, "cannot be negative")
    if config.starting_fuel < 0:
        raise InvalidConfigError("starting_fuel", config.starting_fuel, "cannot be negative")
    if config.min_pit_stops < 0:
        raise InvalidConfigError("min_pit_stops", config.min_pit_stops, "cannot be negative")
    if config.min_pit_stops > config.max_pit_stops:
        raise InvalidConfigError(
            "min_pit_stops", config.min_pit_stops, f"exceeds max_pit_stops={config.max_pit_stops}"
        )
    if config.min_stint_length < 1:
        raise InvalidConfigError("min_stint_length", config.min_stint_length, "must be >= 1")

    if not config.available_compounds:
        raise InfeasibleError("available_compounds", [], "must contain at least one compound")

    allowed = WET_COMPOUNDS if config.wet_race else DRY_COMPOUNDS
    usable = {c for c in config.available_compounds if c in allowed}
    if not usable:
        raise InfeasibleError(
            "available_compounds",
            [c.value for c in config.available_compounds],
            "has no intermediate or wet compound for a wet race"
            if config.wet_race
            else "has no dry compound and wet_race is not set",
        )
    skipped = set(config.available_compounds) - usable
    if skipped and not config.wet_race:
        logger.info(f"Ignoring wet compounds in a dry race: {sorted(c.value for c in skipped)}")

    compounds = sorted(usable, key=_COMPOUND_ORDER.__getitem__)

    if config.required_stops > config.max_pit_stops:
        raise InfeasibleError(
            "max_pit_stops",
            config.max_pit_stops,
            f"is below the {config.required_stops} stop(s) the regulations require",
        )
    if config.required_stops > 0 and len(compounds) < 2:
        raise InfeasibleError(
            "available_compounds",
            [c.value for c in compounds],
            "needs at least two usable compounds to make a mandatory stop",
        )
    return compounds


def _offer(frontier: dict, label: _Label) -> None:
    key = (label.compound, label.stops, label.age)
    existing = frontier.get(key)
    if existing is None or label.rank < existing.rank:
        frontier[key] = label


def _prune_dominated(frontier: dict, min_stint_length: int) -> dict:
    """Drop labels beaten by a label with younger-or-equal tires in their bucket.

    Tires younger than the minimum stint cannot pit yet, so those labels are
    never dominated by an even younger set and are all kept.
    """
    kept = {}
    buckets: dict[tuple, list[_Label]] = {}
    for key, label in frontier.items():
        if label.age < min_stint_length:
            kept[key] = label
            continue
        buckets.setdefault((label.compound, label.stops), []).append(label)

    for labels in buckets.values():
        labels.sort(key=lambda lab: (lab.age, lab.time, lab.first_pit))
        best = None
        for label in labels:
            if best is None or label.rank < best:
                kept[(label.compound, label.stops, label.age)] = label
                best = label.rank
    return kept


def _lap_time_tables(
    model: DegradationModel,
    compounds: list[TireCompound],
    fuel: np.ndarray,
    total_laps: int,
) -> tuple[dict[TireCompound, list[float]], list[float]]:
    """Fuel-free lap time by (compound, tire age) and fuel multiplier by lap.

    Index 0 of every table is unused so that ages and laps index directly.
    """
    pace = {
        compound: [model.predict(compound, age, 0.0) for age in range(total_laps + 1)]
        for compound in compounds
    }
    fuel_mult = [1.0] + [
        fuel_multiplier(model.base_laptime, float(kg), model.fuel_model) for kg in fuel
    ]

    values = np.array([v for table in pace.values() for v in table] + fuel_mult)
    if not np.all(np.isfinite(values)):
        raise NumericError("lap_time", float(values[~np.isfinite(values)][0]), "is not finite")
    return pace, fuel_mult


def optimize(
    config: OptimizationConfig,
    model_config: ModelConfig = DEFAULT_CONFIG,
    cancel: Optional[CancellationToken] = None,
) -> RaceStrategy:
    """Find the fastest legal pit strategy.

    Args:
        config: Race parameters
        model_config: Model constants
        cancel: Optional token checked once per lap

    Returns:
        The optimal RaceStrategy

    Raises:
        InfeasibleError: No compound sequence satisfies the regulations
        InvalidConfigError: Malformed parameters
        NumericError: Degenerate inputs producing non-finite lap times
    """
    compounds = validate_config(config)
    model = DegradationModel.for_race(
        config.circuit,
        config.degradation_factors,
        config.fuel_model,
        config.track_temperature,
        model_config,
    )

    n = config.total_laps
    pit_loss = config.pit_loss
    failure = model_config.failure_wear_threshold
    rates = {c: model.wear_rate(c) for c in compounds}

    def alive(compound: TireCompound, age: int) -> bool:
        return age * rates[compound] < failure

    fuel = model.fuel_profile(config.starting_fuel, n)
    pace, fuel_mult = _lap_time_tables(model, compounds, fuel, n)

    logger.info(
        f"Optimizing {n} laps at {config.circuit.name} with compounds: "
        f"{[c.value for c in compounds]} (pit loss {pit_loss:.1f}s)"
    )

    frontier: dict = {}
    for compound in compounds:
        if alive(compound, 1):
            _offer(
                frontier,
                _Label(1, compound, 0, 1, pace[compound][1] * fuel_mult[1], math.inf, None, False),
            )

    for lap in range(1, n):
        if cancel is not None:
            cancel.raise_if_cancelled("optimize", lap)

        next_lap = lap + 1
        successors: dict = {}
        for label in frontier.values():
            compound = label.compound

            # Option 1: stay out
            age = label.age + 1
            if alive(compound, age):
                _offer(
                    successors,
                    _Label(
                        next_lap,
                        compound,
                        label.stops,
                        age,
                        label.time + pace[compound][age] * fuel_mult[next_lap],
                        label.first_pit,
                        label,
                        False,
                    ),
                )

            # Option 2: pit at the end of this lap for a different compound
            if label.stops >= config.max_pit_stops or label.age < config.min_stint_length:
                continue
            first_pit = lap if label.stops == 0 else label.first_pit
            for new_compound in compounds:
                if new_compound == compound or not alive(new_compound, 1):
                    continue
                _offer(
                    successors,
                    _Label(
                        next_lap,
                        new_compound,
                        label.stops + 1,
                        1,
                        label.time + pit_loss + pace[new_compound][1] * fuel_mult[next_lap],
                        first_pit,
                        label,
                        True,
                    ),
                )

        if model_config.prune_dominated:
            frontier = _prune_dominated(successors, config.min_stint_length)
        else:
            frontier = successors
        if not frontier:
            raise InfeasibleError(
                "available_compounds",
                [c.value for c in compounds],
                f"cannot reach lap {next_lap} without a tire failure",
            )

    terminals = [
        label
        for label in frontier.values()
        if label.stops >= config.required_stops and label.age >= config.min_stint_length
    ]
    if not terminals:
        raise InfeasibleError(
            "min_pit_stops",
            config.required_stops,
            "cannot be met by any compound sequence within max_pit_stops",
        )

    best, spread = _select_terminal(terminals, model_config.tie_tolerance)
    confidence = 1.0 if spread is None else 1.0 - math.exp(-spread / model_config.confidence_scale)

    strategy = _build_strategy(best, config, model, model_config, pace, fuel_mult, confidence)
    logger.info(
        f"Best strategy: {strategy.description} "
        f"(predicted time: {strategy.predicted_race_time:.1f}s, confidence {confidence:.2f})"
    )
    return strategy


def _select_terminal(
    terminals: list[_Label], tolerance: float
) -> tuple[_Label, Optional[float]]:
    """Fastest terminal; ties prefer fewer stops, then the earliest first stop."""
    best_time = min(label.time for label in terminals)
    tied = [label for label in terminals if label.time - best_time <= tolerance]
    best = min(tied, key=lambda lab: (lab.stops, lab.first_pit, lab.time))

    others = [label.time for label in terminals if label is not best]
    if not others:
        return best, None
    return best, max(0.0, min(others) - best.time)


def _build_strategy(
    best: _Label,
    config: OptimizationConfig,
    model: DegradationModel,
    model_config: ModelConfig,
    pace: dict,
    fuel_mult: list,
    confidence: float,
) -> RaceStrategy:
    """Backtrack from the chosen terminal label into a RaceStrategy."""
    path = []
    label = best
    while label is not None:
        path.append(label)
        label = label.parent
    path.reverse()

    stints: list[list[float]] = [[]]
    stops = []
    for previous, current in zip([None] + path[:-1], path):
        if current.pitted:
            stop_lap = current.lap - 1
            wear_at_stop = model.wear(previous.compound, previous.age)
            stops.append((stop_lap, current.compound, wear_at_stop, previous.compound, previous.age))
            stints.append([])
        stints[-1].append(pace[current.compound][current.age] * fuel_mult[current.lap])

    change_required = config.require_compound_change and not config.wet_race
    pit_stops = []
    for index, (lap, compound, wear_at_stop, old_compound, old_age) in enumerate(stops):
        window = calculate_pit_window(lap, old_compound, config, old_age, model_config)
        pit_stops.append(
            PitStop(
                lap=lap,
                compound=compound,
                pit_loss=config.pit_loss,
                reason=_pit_reason(
                    lap, index, wear_at_stop, config, model_config, change_required
                ),
                confidence=round(0.9 if window.contains(lap) else 0.75, 2),
            )
        )

    starting = path[0].compound
    plan_key = "|".join(
        [config.circuit.id, str(config.total_laps), starting.value]
        + [f"{stop.lap}:{stop.compound.value}" for stop in pit_stops]
        + [f"{best.time:.6f}"]
    )

    return RaceStrategy(
        id=str(uuid.uuid5(_STRATEGY_NAMESPACE, plan_key)),
        starting_compound=starting,
        pit_stops=tuple(pit_stops),
        fuel_strategy=FuelStrategy(
            starting_fuel=config.starting_fuel,
            minimum_buffer=config.fuel_model.minimum_buffer,
        ),
        ers_plan=config.ers_plan,
        predicted_race_time=best.time,
        confidence=confidence,
        metadata=StrategyMetadata(optimizer_version=OPTIMIZER_VERSION, num_simulations=0),
        expected_lap_times=tuple(tuple(stint) for stint in stints),
    )


def _pit_reason(
    lap: int,
    index: int,
    wear_at_stop: float,
    config: OptimizationConfig,
    model_config: ModelConfig,
    change_required: bool,
) -> PitStopReason:
    if index == 0 and change_required:
        return PitStopReason.MANDATORY

    for competitor in config.competitors_ahead:
        if competitor.estimated_pit_lap is None:
            continue
        if 0 < competitor.estimated_pit_lap - lap <= 3:
            return PitStopReason.UNDERCUT
        if 0 < lap - competitor.estimated_pit_lap <= 3:
            return PitStopReason.OVERCUT

    if wear_at_stop >= model_config.pit_soon_wear or lap > (config.total_laps * 2) / 3:
        return PitStopReason.TIRE_DEGRADATION
    if lap < config.total_laps / 3:
        return PitStopReason.UNDERCUT
    return PitStopReason.OPPORTUNISTIC


def calculate_pit_window(
    current_lap: int,
    current_compound: TireCompound,
    config: OptimizationConfig,
    tire_age: int = 0,
    model_config: ModelConfig = DEFAULT_CONFIG,
) -> PitWindow:
    """Calculate the pit window for the set of tires currently fitted.

    The window opens when wear reaches the pit-soon threshold and closes at
    95% of the failure threshold; the optimal part sits at 80-90%.
    """
    model = DegradationModel.for_race(
        config.circuit,
        config.degradation_factors,
        config.fuel_model,
        config.track_temperature,
        model_config,
    )
    rate = model.wear_rate(current_compound)
    stint_start = current_lap - tire_age
    last_pit_lap = max(config.total_laps - 1, 1)
    failure = model_config.failure_wear_threshold

    def lap_at(wear: float) -> int:
        if rate <= 0:
            return last_pit_lap
        return min(max(stint_start + int(wear / rate), 1), last_pit_lap)

    earliest = lap_at(model_config.pit_soon_wear)
    latest = max(lap_at(0.95 * failure), earliest)
    optimal_start = min(max(lap_at(0.80 * failure), earliest), latest)
    optimal_end = min(max(lap_at(0.90 * failure), optimal_start), latest)

    constraints = []
    if config.circuit.characteristics.tire_severity > 1.2:
        constraints.append("High tire degradation track")
    for competitor in config.competitors_ahead:
        pit_lap = competitor.estimated_pit_lap
        if pit_lap is not None and earliest <= pit_lap <= latest:
            constraints.append(
                f"Potential undercut opportunity on P{competitor.position} at lap {pit_lap - 1}"
            )

    return PitWindow(
        earliest_lap=earliest,
        latest_lap=latest,
        optimal_start=optimal_start,
        optimal_end=optimal_end,
        constraints=tuple(constraints),
    )


def estimate_time_loss(config: OptimizationConfig, lap: int) -> float:
    """Seconds a pit stop on ``lap`` is expected to cost.

    Lane transit plus the stationary change, scaled up by up to 10% early in
    the race while the car is heavy, plus a track-position penalty: cars
    running near the front have more to lose by rejoining in traffic.
    """
    if not 1 <= lap <= config.total_laps:
        raise InvalidConfigError("lap", lap, f"must be within [1, {config.total_laps}]")
    fuel_factor = 1.0 + (1.0 - lap / config.total_laps) * 0.1
    if config.current_position <= 3:
        position_penalty = 1.5
    elif config.current_position <= 10:
        position_penalty = 1.0
    else:
        position_penalty = 0.5
    return config.pit_loss * fuel_factor + position_penalty


def _grip_score(grip_level: float, grip_demand: float) -> float:
    diff = abs(grip_level - grip_demand)
    if diff < 0.05:
        return 1.0
    if diff < 0.15:
        return 0.8 - (diff - 0.05) * 2.0
    if diff < 0.25:
        return 0.6 - (diff - 0.15) * 2.0
    return 0.3


def _degradation_score(effective_life: float, target_stint_length: int) -> float:
    if effective_life >= target_stint_length * 1.2:
        return 1.0
    if effective_life >= target_stint_length:
        return 0.8
    if effective_life >= target_stint_length * 0.85:
        return 0.5
    return 0.2


def _thermal_score(optimal_temp_range: tuple[float, float], track_temperature: float) -> float:
    low, high = optimal_temp_range
    distance = abs(track_temperature - (low + high) / 2.0)
    if distance <= 5.0:
        return 1.0
    if distance <= 15.0:
        return 1.0 - ((distance - 5.0) / 10.0) * 0.4
    if distance <= 30.0:
        return 0.6 - ((distance - 15.0) / 15.0) * 0.4
    return 0.1


def score_compound(
    compound: TireCompound,
    circuit: Circuit,
    track_temperature: float,
    fuel_load: float,
    target_stint_length: int,
    factors: Optional[DegradationFactors] = None,
) -> float:
    """Suitability of a compound for a stint, in [0, 1].

    Weighted 40% grip match against the circuit's demand, 35% tire life
    against the target stint (shortened by wear multipliers and fuel load)
    and 25% closeness of the track to the compound's operating window.
    """
    factors = factors or DegradationFactors()
    factors.validate()
    tire = compound.characteristics

    grip_demand = min(circuit.characteristics.tire_severity, 2.0) * 0.5
    fuel_impact = 1.0 + (fuel_load / MAX_FUEL_CAPACITY) * 0.15
    effective_life = tire.typical_life / (factors.total_multiplier() * fuel_impact)

    return (
        0.40 * _grip_score(tire.grip_level, grip_demand)
        + 0.35 * _degradation_score(effective_life, target_stint_length)
        + 0.25 * _thermal_score(tire.optimal_temp_range, track_temperature)
    )


def select_optimal_compound(
    circuit: Circuit,
    compounds: tuple[TireCompound, ...],
    track_temperature: float,
    fuel_load: float,
    target_stint_length: int,
    factors: Optional[DegradationFactors] = None,
) -> TireCompound:
    """Pick the best-scoring compound for a stint of ``target_stint_length`` laps.

    Ties go to the harder compound.

    Raises:
        InfeasibleError: ``compounds`` is empty
        InvalidConfigError: ``target_stint_length`` is below one lap
    """
    if not compounds:
        raise InfeasibleError("compounds", [], "must contain at least one compound")
    if target_stint_length < 1:
        raise InvalidConfigError("target_stint_length", target_stint_length, "must be >= 1")

    scores = {
        compound: score_compound(
            compound, circuit, track_temperature, fuel_load, target_stint_length, factors
        )
        for compound in sorted(set(compounds), key=_COMPOUND_ORDER.__getitem__)
    }
    best = max(scores, key=scores.__getitem__)
    logger.debug(
        f"Compound scores at {circuit.id}: "
        + ", ".join(f"{c.value}={s:.3f}" for c, s in scores.items())
    )
    return best


def strategy_risk(strategy: RaceStrategy, config: OptimizationConfig) -> float:
    """Execution risk score: more stops, soft compounds and late stops add risk."""
    risk = strategy.num_pit_stops * 0.1
    for stop in strategy.pit_stops:
        if stop.compound.characteristics.typical_life <= 20:
            risk += 0.2
        if stop.lap > (config.total_laps * 2) / 3:
            risk += 0.15
    return risk


def total_tire_wear(
    strategy: RaceStrategy,
    config: OptimizationConfig,
    model_config: ModelConfig = DEFAULT_CONFIG,
) -> float:
    """Sum of end-of-stint wear across all stints."""
    model = DegradationModel.for_race(
        config.circuit,
        config.degradation_factors,
        config.fuel_model,
        config.track_temperature,
        model_config,
    )
    return sum(
        model.wear(stint.compound, stint.length) for stint in strategy.stints(config.total_laps)
    )


def fuel_efficiency(strategy: RaceStrategy, config: OptimizationConfig) -> float:
    """Laps per kilogram burned over the race at the strategy's starting load."""
    burned = config.fuel_model.fuel_needed_for_laps(
        config.total_laps,
        strategy.fuel_strategy.starting_fuel,
        config.circuit.characteristics.fuel_consumption,
    )
    return config.total_laps / burned


def count_overtaking_opportunities(strategy: RaceStrategy, config: OptimizationConfig) -> int:
    opportunities = sum(1 for stop in strategy.pit_stops if stop.reason == PitStopReason.UNDERCUT)
    for competitor in config.competitors_ahead:
        if competitor.estimated_pit_lap is None:
            continue
        for stop in strategy.pit_stops:
            if 0 < stop.lap - competitor.estimated_pit_lap < 10:
                opportunities += 1
    return opportunities


def compare_strategies(
    strategy_a: RaceStrategy,
    strategy_b: RaceStrategy,
    config: OptimizationConfig,
    model_config: ModelConfig = DEFAULT_CONFIG,
) -> StrategyComparison:
    """Compare two strategies on predicted time, risk and tire usage."""
    risk_delta = strategy_risk(strategy_a, config) - strategy_risk(strategy_b, config)
    breakdown = ComparisonBreakdown(
        tire_wear_difference=total_tire_wear(strategy_a, config, model_config)
        - total_tire_wear(strategy_b, config, model_config),
        pit_loss_difference=strategy_a.total_pit_loss - strategy_b.total_pit_loss,
        fuel_efficiency_difference=fuel_efficiency(strategy_a, config)
        - fuel_efficiency(strategy_b, config),
        track_position_risk=risk_delta,
        overtaking_opportunities=count_overtaking_opportunities(strategy_a, config)
        - count_overtaking_opportunities(strategy_b, config),
    )
    return StrategyComparison(
        strategy_a=strategy_a.id,
        strategy_b=strategy_b.id,
        time_delta=strategy_a.predicted_race_time - strategy_b.predicted_race_time,
        risk_delta=risk_delta,
        breakdown=breakdown,
    )
