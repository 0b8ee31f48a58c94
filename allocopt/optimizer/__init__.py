"""Optimizer boundary, default optimizer and scenario pool."""

from .adapter import OptimizerAdapter
from .analytic import AnalyticOptimizer, Scenario, indexing_rewards, water_fill, water_fill_above
from .base import MAX_ALLOCATION_LIFETIME, Optimizer, OptimizerRequest, OptimizerSettings
from .pool import ScenarioPool, ScenarioPoolClosed

__all__ = [
    "OptimizerAdapter",
    "AnalyticOptimizer",
    "Scenario",
    "indexing_rewards",
    "water_fill",
    "water_fill_above",
    "MAX_ALLOCATION_LIFETIME",
    "Optimizer",
    "OptimizerRequest",
    "OptimizerSettings",
    "ScenarioPool",
    "ScenarioPoolClosed",
]
