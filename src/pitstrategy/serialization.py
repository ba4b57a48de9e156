"""Plain-dict and JSON conversion for the records crossing the package boundary.

Field names are the dataclass attribute names, enums are written by value
(``"C3"``, ``"INTERMEDIATE"``) and timestamps as ISO-8601 strings. Both
directions go through pydantic ``TypeAdapter`` schemas built from the
dataclasses themselves, so decoding rebuilds every nested record through its
own ``__post_init__`` validation. Statistics with no value (NaN) are written
as ``null``.
"""

import json
import logging
import math
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

from pitstrategy.errors import InvalidConfigError, StrategyError
from pitstrategy.optimizer import OptimizationConfig
from pitstrategy.simulator import SimulationConfig, SimulationResult
from pitstrategy.strategy import RaceStrategy
from pitstrategy.track import Circuit
from pitstrategy.weather import WeatherForecast

logger = logging.getLogger(__name__)

_NULLABLE_STATS = {
    "mean",
    "median",
    "min",
    "max",
    "std",
    "percentile_10",
    "percentile_25",
    "percentile_50",
    "percentile_75",
    "percentile_90",
}


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _null_non_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _null_non_finite(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_null_non_finite(item) for item in value]
    return value


def to_dict(obj: Any) -> Any:
    """Convert a record (or any nesting of records) to JSON-ready values."""
    return _null_non_finite(_adapter(type(obj)).dump_python(obj, mode="json"))


def to_json(obj: Any, indent: int = 2) -> str:
    return json.dumps(to_dict(obj), indent=indent, allow_nan=False)


def _field_path(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _from_dict(cls: type, data: Any) -> Any:
    try:
        return _adapter(cls).validate_python(data)
    except ValidationError as e:
        error = e.errors()[0]
        cause = error.get("ctx", {}).get("error")
        if isinstance(cause, StrategyError):
            raise cause from None
        field = _field_path(error["loc"]) or cls.__name__
        logger.debug(f"Rejected {cls.__name__} input: {e}")
        raise InvalidConfigError(field, error.get("input"), error["msg"].lower()) from None


def circuit_from_dict(data: dict) -> Circuit:
    return _from_dict(Circuit, data)


def forecast_from_dict(data: dict) -> WeatherForecast:
    return _from_dict(WeatherForecast, data)


def optimization_config_from_dict(data: dict) -> OptimizationConfig:
    return _from_dict(OptimizationConfig, data)


def simulation_config_from_dict(data: dict) -> SimulationConfig:
    return _from_dict(SimulationConfig, data)


def strategy_from_dict(data: dict) -> RaceStrategy:
    return _from_dict(RaceStrategy, data)


def result_from_dict(data: dict) -> SimulationResult:
    """Rebuild a result, reading ``null`` statistics back as NaN."""
    if isinstance(data, dict):
        data = dict(data)
        for name in _NULLABLE_STATS:
            if name in data and data[name] is None:
                data[name] = math.nan
        interval = data.get("mean_confidence_interval")
        if isinstance(interval, (list, tuple)):
            data["mean_confidence_interval"] = [
                math.nan if bound is None else bound for bound in interval
            ]
    return _from_dict(SimulationResult, data)


def strategy_from_json(text: str) -> RaceStrategy:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidConfigError("json", text[:40], f"is not valid JSON ({e.msg})") from None
    return strategy_from_dict(data)
