"""Directory relocation engine.

This module provides the path mapping between sync sources and volatile
storage, the prepare/flush/restore transitions, crash repair, orphan
detection and status reporting.
"""

from anysync.relocation.inspector import InvalidSourceError, SourceInfo, inspect_source
from anysync.relocation.layout import (
    BACKUP_SUFFIX,
    VOLATILE_PREFIX,
    MappedPaths,
    VolatileLocation,
    backup_path_for,
    decode_volatile_path,
    encode_volatile_path,
    map_source,
)
from anysync.relocation.mirror import CopyTool, MirrorError
from anysync.relocation.models import (
    LifecycleResult,
    Orphan,
    OrphanReport,
    SourceState,
    SourceStatus,
    StatusReport,
    TransitionOutcome,
    TransitionResult,
    Verb,
    VolatileCapacity,
)
from anysync.relocation.operator import RelocationOperator, VolatileRootError
from anysync.relocation.repair import ConsistencyRepairer
from anysync.relocation.scanner import OrphanScanner
from anysync.relocation.status import StatusReporter

__all__ = [
    "BACKUP_SUFFIX",
    "VOLATILE_PREFIX",
    "ConsistencyRepairer",
    "CopyTool",
    "InvalidSourceError",
    "LifecycleResult",
    "MappedPaths",
    "MirrorError",
    "Orphan",
    "OrphanReport",
    "OrphanScanner",
    "RelocationOperator",
    "SourceInfo",
    "SourceState",
    "SourceStatus",
    "StatusReport",
    "StatusReporter",
    "TransitionOutcome",
    "TransitionResult",
    "Verb",
    "VolatileCapacity",
    "VolatileLocation",
    "VolatileRootError",
    "backup_path_for",
    "decode_volatile_path",
    "encode_volatile_path",
    "inspect_source",
    "map_source",
]
