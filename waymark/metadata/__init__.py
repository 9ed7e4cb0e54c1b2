"""
Waymark metadata - raw annotation records and their store.
"""

from .records import (
    AnnotationKind,
    AnnotationRecord,
    ClassIdentity,
    Method,
    Tag,
    ROUTE_TAGS,
)
from .store import AnnotationStore
from .paths import join_path

__all__ = [
    "AnnotationKind",
    "AnnotationRecord",
    "ClassIdentity",
    "Method",
    "Tag",
    "ROUTE_TAGS",
    "AnnotationStore",
    "join_path",
]
