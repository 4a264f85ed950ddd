"""
Reconciliation pipeline: join engine, secondary lookups and run context.
"""

from .join_engine import FailurePolicy, JoinEngine, RunResult, SecondaryJoin
from .lookup_cache import BatchLookupCache, DirectLookup, Lookup

__all__ = [
    "BatchLookupCache",
    "DirectLookup",
    "FailurePolicy",
    "JoinEngine",
    "Lookup",
    "RunResult",
    "SecondaryJoin",
]
