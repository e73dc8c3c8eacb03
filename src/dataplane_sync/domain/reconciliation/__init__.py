"""Ordered collection reconciliation: diff, plan and apply."""

from __future__ import annotations

from .apply import ApplyResult, apply_plan
from .engine import CollectionReconciler, reconcile
from .plan import PlanAction, PlanEntry, ReconciliationPlan
from .strategy import ResourceStrategy, default_strategies

__all__ = [
    "ApplyResult",
    "CollectionReconciler",
    "PlanAction",
    "PlanEntry",
    "ReconciliationPlan",
    "ResourceStrategy",
    "apply_plan",
    "default_strategies",
    "reconcile",
]
