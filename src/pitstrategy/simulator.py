"""Race simulation with Monte Carlo for the pit strategy optimizer.

Each trial replays a fixed strategy lap by lap with random perturbations of
tire wear, lap time and pit loss. Trial ``i`` always draws from child ``i`` of
the seed sequence, so a seeded run gives the same numbers no matter how many
workers share the trials.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd
from pydantic import ConfigDict, with_config
from scipy import stats
from tqdm import tqdm

from pitstrategy.cancellation import CancellationToken
from pitstrategy.config import DEFAULT_CONFIG, ModelConfig
from pitstrategy.degrade_model import DegradationFactors, DegradationModel, FuelConsumptionModel
from pitstrategy.errors import InvalidConfigError
from pitstrategy.strategy import RaceStrategy
from pitstrategy.tires import TireCompound
from pitstrategy.track import Circuit
from pitstrategy.weather import WeatherCondition, WeatherForecast, is_wrong_tire, weather_lap_penalty

logger = logging.getLogger(__name__)

PERCENTILES = (10, 25, 50, 75, 90)


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class SimulationConfig:
    """Monte Carlo run parameters.

    Variances are coefficients of variation: ``lap_time_variance=0.02`` means
    a one-sigma lap is 2% off the model time in settled dry weather.
    """

    num_iterations: int
    circuit: Circuit
    weather_forecast: WeatherForecast = field(default_factory=WeatherForecast)
    degradation_variance: float = 0.1
    lap_time_variance: float = 0.02
    seed: Optional[int] = None
    total_laps: Optional[int] = None  # None = circuit.typical_race_laps
    degradation_factors: DegradationFactors = field(default_factory=DegradationFactors)
    fuel_model: FuelConsumptionModel = field(default_factory=FuelConsumptionModel)
    pit_loss_variance: float = 0.0
    workers: int = 1
    keep_samples: bool = True

    @property
    def race_laps(self) -> int:
        if self.total_laps is None:
            return self.circuit.typical_race_laps
        return self.total_laps


@with_config(ConfigDict(extra="forbid"))
@dataclass(frozen=True)
class SimulationResult:
    """Aggregated outcome of a Monte Carlo run.

    Time statistics cover completed trials only and are NaN when every trial
    ended in a tire failure.
    """

    strategy_id: str
    num_iterations: int
    completed: int
    mean: float
    median: float
    min: float
    max: float
    std: float
    percentile_10: float
    percentile_25: float
    percentile_50: float
    percentile_75: float
    percentile_90: float
    dnf_probability: float
    mean_confidence_interval: tuple[float, float]
    samples: tuple[float, ...] = ()  # completed finish times, trial order
    dnf_laps: tuple[int, ...] = ()
    seed: Optional[int] = None

    def percentile(self, q: float) -> float:
        if not 0 <= q <= 100:
            raise InvalidConfigError("q", q, "must be in [0, 100]")
        stored = {p: getattr(self, f"percentile_{p}") for p in PERCENTILES}
        if q in stored:
            return stored[q]
        if not self.samples:
            if self.completed == 0:
                return float("nan")
            raise InvalidConfigError("samples", (), "were not kept; rerun with keep_samples=True")
        return float(np.percentile(self.samples, q, method="linear"))

    def to_frame(self) -> pd.DataFrame:
        """Completed finish times as a DataFrame, one row per trial."""
        return pd.DataFrame({"total_time": np.asarray(self.samples, dtype=float)})

    def summary(self) -> dict:
        low, high = self.mean_confidence_interval
        return {
            "Strategy": self.strategy_id,
            "Mean Time (s)": self.mean,
            "Std Time (s)": self.std,
            "Min Time (s)": self.min,
            "P10 Time (s)": self.percentile_10,
            "P25 Time (s)": self.percentile_25,
            "Median Time (s)": self.median,
            "P75 Time (s)": self.percentile_75,
            "P90 Time (s)": self.percentile_90,
            "Max Time (s)": self.max,
            "CI95 Low (s)": low,
            "CI95 High (s)": high,
            "DNF Rate": self.dnf_probability,
        }


@dataclass(frozen=True)
class PitStopEvent:
    lap: int
    from_compound: TireCompound
    to_compound: TireCompound
    pit_loss: float
    tire_wear: float


@dataclass
class RaceTrace:
    """One detailed replay of a strategy."""

    lap_times: list[float] = field(default_factory=list)
    tire_history: list[tuple[TireCompound, float]] = field(default_factory=list)
    fuel_history: list[float] = field(default_factory=list)
    pit_events: list[PitStopEvent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dnf_lap: Optional[int] = None
    total_time: float = 0.0

    @property
    def finished(self) -> bool:
        return self.dnf_lap is None


@dataclass(frozen=True)
class _RacePlan:
    """Everything about a replay that does not depend on the random draws."""

    total_laps: int
    compounds: tuple[TireCompound, ...]  # per lap, index 0 = lap 1
    pit_losses: dict  # lap -> nominal pit loss
    pit_order: dict  # lap -> index into the pit noise vector
    next_compound: dict  # lap -> compound fitted at that stop
    wear_rates: dict
    fuel: np.ndarray
    volatility: np.ndarray
    weather_penalty: np.ndarray
    conditions: tuple[WeatherCondition, ...]
    model: DegradationModel
    degradation_variance: float
    lap_time_variance: float
    pit_loss_variance: float


def validate_config(strategy: RaceStrategy, config: SimulationConfig) -> None:
    if config.num_iterations <= 0:
        raise InvalidConfigError("num_iterations", config.num_iterations, "must be greater than 0")
    if config.race_laps <= 0:
        raise InvalidConfigError("total_laps", config.race_laps, "must be greater than 0")
    for name in ("degradation_variance", "lap_time_variance", "pit_loss_variance"):
        value = getattr(config, name)
        if not value >= 0:
            raise InvalidConfigError(name, value, "cannot be negative")
    if config.workers < 1:
        raise InvalidConfigError("workers", config.workers, "must be >= 1")

    laps = [stop.lap for stop in strategy.pit_stops]
    for lap in laps:
        if not 1 <= lap <= config.race_laps:
            raise InvalidConfigError(
                "pit_stops.lap", lap, f"must be within [1, {config.race_laps}]"
            )
    if any(later <= earlier for earlier, later in zip(laps, laps[1:])):
        raise InvalidConfigError("pit_stops", laps, "laps must be strictly increasing")


def _build_plan(
    strategy: RaceStrategy, config: SimulationConfig, model_config: ModelConfig
) -> _RacePlan:
    forecast = config.weather_forecast
    model = DegradationModel.for_race(
        config.circuit,
        config.degradation_factors,
        config.fuel_model,
        forecast.track_temperature,
        model_config,
    )
    n = config.race_laps

    compounds = tuple(strategy.compound_for_lap(lap) for lap in range(1, n + 1))
    used = set(compounds) | {stop.compound for stop in strategy.pit_stops}

    # Weather is sampled at the nominal elapsed time of each lap
    variability = config.circuit.characteristics.weather_variability
    conditions = []
    volatility = np.empty(n)
    penalty = np.empty(n)
    for i in range(n):
        minutes = i * model.base_laptime / 60.0
        conditions.append(forecast.condition_at(minutes))
        volatility[i] = forecast.volatility_at(minutes, variability)
        penalty[i] = weather_lap_penalty(conditions[-1], compounds[i])

    return _RacePlan(
        total_laps=n,
        compounds=compounds,
        pit_losses={stop.lap: stop.pit_loss for stop in strategy.pit_stops},
        pit_order={stop.lap: i for i, stop in enumerate(strategy.pit_stops)},
        next_compound={stop.lap: stop.compound for stop in strategy.pit_stops},
        wear_rates={c: model.wear_rate(c) for c in used},
        fuel=model.fuel_profile(strategy.fuel_strategy.starting_fuel, n),
        volatility=volatility,
        weather_penalty=penalty,
        conditions=tuple(conditions),
        model=model,
        degradation_variance=config.degradation_variance,
        lap_time_variance=config.lap_time_variance,
        pit_loss_variance=config.pit_loss_variance,
    )


def _replay(
    plan: _RacePlan,
    rng: np.random.Generator,
    trace: Optional[RaceTrace] = None,
) -> tuple[Optional[float], Optional[int]]:
    """Run one trial; returns (finish time, None) or (None, DNF lap)."""
    config = plan.model.config
    n = plan.total_laps
    z_lap = rng.standard_normal(n)
    z_wear = rng.standard_normal(n)
    z_pit = rng.standard_normal(len(plan.pit_losses))

    wear = 0.0
    total = 0.0
    for i in range(n):
        lap = i + 1
        compound = plan.compounds[i]
        volatility = plan.volatility[i]

        wear += plan.wear_rates[compound] * max(
            0.0, 1.0 + plan.degradation_variance * volatility * z_wear[i]
        )
        if wear >= config.failure_wear_threshold:
            if trace is not None:
                trace.dnf_lap = lap
                trace.total_time = total
                trace.warnings.append(f"Tire failure on lap {lap} ({compound.value})")
            return None, lap

        base = plan.model.lap_time_at_wear(compound, min(wear, 1.0), float(plan.fuel[i]))
        noise = 1.0 + plan.lap_time_variance * volatility * (
            1.0 + config.wear_noise_gain * wear
        ) * z_lap[i]
        lap_time = (base + plan.weather_penalty[i]) * max(config.min_lap_factor, noise)
        total += lap_time

        if trace is not None:
            trace.lap_times.append(lap_time)
            trace.tire_history.append((compound, wear))
            trace.fuel_history.append(float(plan.fuel[i]))

        if lap in plan.pit_losses:
            pit_loss = plan.pit_losses[lap] * max(
                0.0, 1.0 + plan.pit_loss_variance * z_pit[plan.pit_order[lap]]
            )
            total += pit_loss
            if trace is not None:
                trace.pit_events.append(
                    PitStopEvent(lap, compound, plan.next_compound[lap], pit_loss, wear)
                )
            wear = 0.0

    if trace is not None:
        trace.total_time = total
    return total, None


def _run_chunk(
    plan: _RacePlan,
    seeds: list,
    cancel: Optional[CancellationToken],
    progress: Optional[tqdm],
) -> list[tuple[Optional[float], Optional[int]]]:
    outcomes = []
    for seed in seeds:
        if cancel is not None:
            cancel.raise_if_cancelled("simulate", len(outcomes))
        outcomes.append(_replay(plan, np.random.default_rng(seed)))
        if progress is not None:
            progress.update(1)
    return outcomes


def _summarize(
    strategy: RaceStrategy,
    config: SimulationConfig,
    outcomes: list[tuple[Optional[float], Optional[int]]],
    seed: int,
) -> SimulationResult:
    times = np.array([t for t, _ in outcomes if t is not None], dtype=float)
    dnf_laps = tuple(lap for _, lap in outcomes if lap is not None)
    completed = len(times)
    nan = float("nan")

    if completed == 0:
        percentiles = {p: nan for p in PERCENTILES}
        mean = median = lo = hi = std = nan
        interval = (nan, nan)
    else:
        lo, hi = float(times.min()), float(times.max())
        # Shift by the minimum so identical samples give mean == min exactly
        shifted = times - lo
        mean = lo + float(shifted.mean())
        std = float(shifted.std())
        median = float(np.percentile(times, 50, method="linear"))
        percentiles = {
            p: float(np.percentile(times, p, method="linear")) for p in PERCENTILES
        }
        if completed < 2 or std == 0.0:
            interval = (mean, mean)
        else:
            low, high = stats.t.interval(
                0.95, completed - 1, loc=mean, scale=stats.sem(times)
            )
            interval = (float(low), float(high))

    return SimulationResult(
        strategy_id=strategy.id,
        num_iterations=config.num_iterations,
        completed=completed,
        mean=mean,
        median=median,
        min=lo,
        max=hi,
        std=std,
        percentile_10=percentiles[10],
        percentile_25=percentiles[25],
        percentile_50=percentiles[50],
        percentile_75=percentiles[75],
        percentile_90=percentiles[90],
        dnf_probability=len(dnf_laps) / config.num_iterations,
        mean_confidence_interval=interval,
        samples=tuple(float(t) for t in times) if config.keep_samples else (),
        dnf_laps=dnf_laps,
        seed=seed,
    )


def simulate(
    strategy: RaceStrategy,
    config: SimulationConfig,
    model_config: ModelConfig = DEFAULT_CONFIG,
    cancel: Optional[CancellationToken] = None,
    show_progress: bool = False,
) -> SimulationResult:
    """Run a Monte Carlo simulation for a strategy.

    Trials are split into contiguous chunks, one per worker thread. The replay
    loop is pure Python and holds the GIL, so ``workers`` bounds concurrency
    but does not speed up CPU-bound runs.

    Args:
        strategy: Strategy to replay
        config: Simulation parameters
        model_config: Model constants
        cancel: Optional token checked before every trial
        show_progress: Display a tqdm progress bar

    Returns:
        SimulationResult over all trials

    Raises:
        InvalidConfigError: Malformed parameters or pit laps outside the race
        NumericError: Degenerate fuel or wear coefficients
        OperationCancelledError: ``cancel`` was triggered mid-run
    """
    validate_config(strategy, config)
    plan = _build_plan(strategy, config, model_config)

    if config.seed is None:
        sequence = np.random.SeedSequence()
        seed = int(sequence.entropy)
        logger.info(f"No seed given, using entropy {seed}")
    else:
        sequence = np.random.SeedSequence(config.seed)
        seed = config.seed
    children = sequence.spawn(config.num_iterations)

    workers = min(config.workers, config.num_iterations)
    chunks = [list(chunk) for chunk in np.array_split(np.arange(config.num_iterations), workers)]

    progress = None
    if show_progress:
        progress = tqdm(total=config.num_iterations, desc=f"Simulating {strategy.description}")
    try:
        if workers == 1:
            outcomes = _run_chunk(plan, children, cancel, progress)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(
                        _run_chunk, plan, [children[i] for i in chunk], cancel, progress
                    )
                    for chunk in chunks
                ]
                outcomes = []
                for future in futures:
                    outcomes.extend(future.result())
    finally:
        if progress is not None:
            progress.close()

    result = _summarize(strategy, config, outcomes, seed)
    logger.info(
        f"Completed {result.num_iterations} simulations for {strategy.description}: "
        f"mean time = {result.mean:.1f}s, DNF rate = {result.dnf_probability:.1%}"
    )
    return result


def simulate_race(
    strategy: RaceStrategy,
    config: SimulationConfig,
    model_config: ModelConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
) -> RaceTrace:
    """Replay a strategy once, recording lap-level history and warnings."""
    validate_config(strategy, config)
    plan = _build_plan(strategy, config, model_config)
    if rng is None:
        rng = np.random.default_rng(config.seed)

    trace = RaceTrace()
    n = plan.total_laps
    model = plan.model

    if not strategy.pit_stops:
        trace.warnings.append("No pit stops planned")

    needed = model.fuel_model.fuel_needed_for_laps(
        n, strategy.fuel_strategy.starting_fuel, model.fuel_track_factor
    )
    if needed + model.fuel_model.minimum_buffer > strategy.fuel_strategy.starting_fuel:
        laps_on_board = model.fuel_model.laps_remaining(
            strategy.fuel_strategy.starting_fuel, model.fuel_track_factor
        )
        trace.warnings.append(
            f"Fuel insufficient: {needed:.1f}kg needed, "
            f"{strategy.fuel_strategy.starting_fuel:.1f}kg loaded, "
            f"enough for about {laps_on_board:.0f} laps"
        )

    low_fuel = np.flatnonzero(plan.fuel < model_config.low_fuel_warning)
    if low_fuel.size:
        trace.warnings.append(f"Low fuel from lap {int(low_fuel[0]) + 1}")

    for stint in strategy.stints(n):
        life = stint.compound.characteristics.typical_life
        if stint.length > life:
            trace.warnings.append(
                f"{stint.compound.value} run {stint.length} laps from lap {stint.start_lap}, "
                f"past its typical life of {life}"
            )

    wrong = [
        i + 1 for i in range(n) if is_wrong_tire(plan.conditions[i], plan.compounds[i])
    ]
    if wrong:
        trace.warnings.append(f"Wrong tire for the weather from lap {wrong[0]}")

    _replay(plan, rng, trace)
    for warning in trace.warnings:
        logger.debug(f"{strategy.description}: {warning}")
    return trace


def compare_results(results: dict[str, SimulationResult]) -> pd.DataFrame:
    """Compare multiple strategies statistically, fastest mean first."""
    comparison_data = []
    for strategy_name, result in results.items():
        row = result.summary()
        row["Strategy"] = strategy_name
        comparison_data.append(row)

    df = pd.DataFrame(comparison_data)
    if not df.empty:
        df = df.sort_values("Mean Time (s)", na_position="last").reset_index(drop=True)
    return df
