"""
Annotation Store

Append-only collector of annotation records, keyed by class identity.
Pure bookkeeping: nothing is interpreted here.
"""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field
from types import MappingProxyType
import logging

from .records import AnnotationKind, AnnotationRecord, ClassIdentity


logger = logging.getLogger("waymark.store")

IdentityLike = Union[ClassIdentity, str]


@dataclass
class _ClassEntry:
    identity: ClassIdentity
    class_records: List[AnnotationRecord] = field(default_factory=list)
    method_records: Dict[str, List[AnnotationRecord]] = field(default_factory=dict)


class AnnotationStore:
    """
    Collects class-level and method-level annotation records.

    Classes are tracked once, in first-registration order. Records
    accumulate: several annotations on the same class or method never
    overwrite each other.

    A class is identified by its key together with its factory. When a
    different factory arrives under a key that is already taken (two
    classes with the same qualified name, e.g. built by a factory
    function), it is registered as a separate class under ``key#N``.

    Example:
        store = AnnotationStore()
        ident = ClassIdentity.of(UsersController)
        store.append(ident, AnnotationRecord.controller("users"))
        store.append(ident, AnnotationRecord.route("GET", "/:id", UsersController.show))
    """

    def __init__(self):
        self._entries: Dict[str, _ClassEntry] = {}
        # requested key -> entries registered under it, one per factory
        self._variants: Dict[str, List[_ClassEntry]] = {}

    def append(self, identity: ClassIdentity, record: AnnotationRecord) -> None:
        """
        Append a record under ``identity``.

        The identity is registered on its first occurrence. Appends with
        the same key and an equal factory land on the same class.
        """
        variants = self._variants.setdefault(identity.key, [])
        entry = next(
            (e for e in variants if e.identity.factory == identity.factory), None
        )
        if entry is None:
            if variants or identity.key in self._entries:
                requested = identity.key
                identity = ClassIdentity(key=self._free_key(requested), factory=identity.factory)
                logger.debug(
                    "Key %s is taken by another class, registering as %s",
                    requested, identity.key,
                )
            entry = _ClassEntry(identity=identity)
            variants.append(entry)
            self._entries[identity.key] = entry
            logger.debug("Registered class %s", identity.key)

        if record.kind == AnnotationKind.CLASS:
            entry.class_records.append(record)
        else:
            entry.method_records.setdefault(record.method_name, []).append(record)

    def class_records(self, identity: IdentityLike) -> Tuple[AnnotationRecord, ...]:
        """Class-level records in declaration order (empty if none)."""
        entry = self._entry(identity)
        if entry is None:
            return ()
        return tuple(entry.class_records)

    def method_records(self, identity: IdentityLike) -> Mapping[str, Tuple[AnnotationRecord, ...]]:
        """Method name -> records on that method, groups in first-seen order."""
        entry = self._entry(identity)
        if entry is None:
            return MappingProxyType({})
        return MappingProxyType({
            name: tuple(records)
            for name, records in entry.method_records.items()
        })

    def known_classes(self) -> Iterator[ClassIdentity]:
        """
        Yield registered identities in first-registration order.

        The returned iterator is single-use.
        """
        for entry in tuple(self._entries.values()):
            yield entry.identity

    def record_count(self, identity: Optional[IdentityLike] = None) -> int:
        """Number of records for one class, or for the whole store."""
        if identity is None:
            entries = list(self._entries.values())
        else:
            entry = self._entry(identity)
            entries = [entry] if entry is not None else []
        return sum(
            len(e.class_records) + sum(len(r) for r in e.method_records.values())
            for e in entries
        )

    def _entry(self, identity: IdentityLike) -> Optional[_ClassEntry]:
        """Entry for a key, or for the class a ClassIdentity was registered as."""
        if isinstance(identity, ClassIdentity):
            for entry in self._variants.get(identity.key, ()):
                if entry.identity.factory == identity.factory:
                    return entry
            return self._entries.get(identity.key)
        return self._entries.get(identity)

    def _free_key(self, key: str) -> str:
        n = 2
        while f"{key}#{n}" in self._entries:
            n += 1
        return f"{key}#{n}"

    def __contains__(self, identity: IdentityLike) -> bool:
        return self._entry(identity) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<AnnotationStore classes={len(self._entries)} records={self.record_count()}>"
