"""
Pit Strategy: Race Strategy Optimization + Monte Carlo Validation

A strategy engine for Formula 1 races with:
- Tire wear, grip and fuel-load lap time modeling
- Exact pit stop optimization by dynamic programming
- Monte Carlo simulation with weather-driven uncertainty
"""

__version__ = "0.1.0"

from pitstrategy import (
    config,
    degrade_model,
    errors,
    optimizer,
    serialization,
    simulator,
    strategy,
    tires,
    track,
    weather,
)
from pitstrategy.optimizer import OptimizationConfig, optimize
from pitstrategy.simulator import SimulationConfig, simulate

__all__ = [
    "config",
    "degrade_model",
    "errors",
    "optimizer",
    "serialization",
    "simulator",
    "strategy",
    "tires",
    "track",
    "weather",
    "OptimizationConfig",
    "SimulationConfig",
    "optimize",
    "simulate",
]
