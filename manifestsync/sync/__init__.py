"""Sync engine for manifestsync - diff, copy and delete against a manifest."""

from .comparator import ChangeDetector, CompareMode, CopyAction, CopyDecision
from .diff import DiffResult, Override, compute_diff
from .engine import SyncEngine
from .generator import run_generator
from .operations import SyncOperations, atomic_copy
from .planner import DirectoryPlanner, DirectoryResult, plan_directories
from .reader import Manifest, Pair, iter_pairs, parse_manifest
from .report import CopyOutcome, DeleteOutcome, OutcomeStatus, SyncReport
from .state import ManifestStore

__all__ = [
    "SyncEngine",
    "ChangeDetector",
    "CompareMode",
    "CopyAction",
    "CopyDecision",
    "DiffResult",
    "Override",
    "compute_diff",
    "run_generator",
    "SyncOperations",
    "atomic_copy",
    "DirectoryPlanner",
    "DirectoryResult",
    "plan_directories",
    "Manifest",
    "Pair",
    "iter_pairs",
    "parse_manifest",
    "CopyOutcome",
    "DeleteOutcome",
    "OutcomeStatus",
    "SyncReport",
    "ManifestStore",
]
