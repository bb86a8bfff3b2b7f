"""Freshness tracking: memoized staleness verdicts, diagnostics, and watching."""

from smake_core.freshness.models import (
    Freshness,
    FreshnessVerdict,
    IndeterminateReason,
    OutputUpdateInfo,
)
from smake_core.freshness.rule import Rule, UpdateInfoView
from smake_core.freshness.watcher import RuleWatcher

__all__ = [
    "Freshness",
    "FreshnessVerdict",
    "IndeterminateReason",
    "OutputUpdateInfo",
    "Rule",
    "RuleWatcher",
    "UpdateInfoView",
]
