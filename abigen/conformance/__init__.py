"""Runtime conformance probing against generated bindings."""

from abigen.conformance.history import ConformanceHistoryEntry, ConformanceHistoryStore
from abigen.conformance.prober import (
    ConformanceProber,
    ConformanceReport,
    DetectionResult,
    ProbeOutcome,
    ProbePhase,
    Verdict,
)
from abigen.conformance.registry import BindingRegistry

__all__ = [
    "BindingRegistry",
    "ConformanceHistoryEntry",
    "ConformanceHistoryStore",
    "ConformanceProber",
    "ConformanceReport",
    "DetectionResult",
    "ProbeOutcome",
    "ProbePhase",
    "Verdict",
]
