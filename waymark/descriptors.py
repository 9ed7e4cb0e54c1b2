"""
Descriptor builder API.

An explicit alternative to decorators: a descriptor names a class
identity and lists its annotation records, and ``register()`` appends
them to a store. Handlers are function values captured at registration
time and bound to the singleton by the resolver.
"""

from typing import Any, Callable, Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable
import logging

from .metadata import (
    AnnotationRecord,
    AnnotationStore,
    ClassIdentity,
    Method,
)


logger = logging.getLogger("waymark.descriptors")

Handler = Callable[..., Any]


@runtime_checkable
class Describable(Protocol):
    """Anything that can describe its own annotation records."""

    identity: ClassIdentity

    def describe(self) -> Iterable[AnnotationRecord]:
        ...


class Descriptor:
    """
    Fluent builder for the annotations of one class.

    Example:
        users = (
            Descriptor("users", UsersController)
            .controller("users")
            .route("GET", "/:id", UsersController.show, template="users/show.html")
            .middleware(UsersController.audit, priority=10)
        )
        register(store, users)
    """

    def __init__(self, key: str, factory: Callable[[], Any]):
        self.identity = ClassIdentity(key=key, factory=factory)
        self._records: List[AnnotationRecord] = []
        # handler -> method name its records are grouped under
        self._names: List[Tuple[Handler, str]] = []

    @classmethod
    def for_class(cls, target: type) -> "Descriptor":
        """Descriptor keyed like the decorator API keys ``target``."""
        identity = ClassIdentity.of(target)
        return cls(identity.key, identity.factory)

    def controller(self, prefix: Optional[str] = None) -> "Descriptor":
        self._records.append(AnnotationRecord.controller(prefix))
        return self

    def plugin(self, name: str) -> "Descriptor":
        self._records.append(AnnotationRecord.plugin(name))
        return self

    def route(
        self,
        method: Union[str, Method],
        path: Optional[str],
        handler: Handler,
        *,
        template: Optional[str] = None,
        name: Optional[str] = None,
    ) -> "Descriptor":
        """
        Add a route; ``template`` adds a sibling Template record.

        ``name`` overrides the method name used to group records.
        """
        name = self._method_name(handler, name)
        self._records.append(AnnotationRecord.route(method, path, handler, method_name=name))
        if template is not None:
            self._records.append(AnnotationRecord.template(template, handler, method_name=name))
        return self

    def middleware(self, handler: Handler, priority: float, *, name: Optional[str] = None) -> "Descriptor":
        self._records.append(AnnotationRecord.middleware(
            priority, handler, method_name=self._method_name(handler, name),
        ))
        return self

    def template(self, handler: Handler, path: str, *, name: Optional[str] = None) -> "Descriptor":
        self._records.append(AnnotationRecord.template(
            path, handler, method_name=self._method_name(handler, name),
        ))
        return self

    def error_handler(self, handler: Handler, *, name: Optional[str] = None) -> "Descriptor":
        self._records.append(AnnotationRecord.error_handler(
            handler, method_name=self._method_name(handler, name),
        ))
        return self

    def _method_name(self, handler: Handler, name: Optional[str]) -> str:
        """
        Group name for ``handler``.

        Records of the same handler share a group. A different handler
        whose ``__name__`` is already used (two lambdas, say) gets a
        numbered name, so records of distinct handlers never mix.
        """
        if name is None:
            for seen, seen_name in self._names:
                if seen == handler:
                    return seen_name

            base = getattr(handler, "__name__", "handler")
            if base == "<lambda>":
                base = "lambda"
            taken = {n for _, n in self._names}
            name, n = base, 2
            while name in taken:
                name, n = f"{base}_{n}", n + 1

        self._names.append((handler, name))
        return name

    def describe(self) -> Tuple[AnnotationRecord, ...]:
        return tuple(self._records)

    def __repr__(self) -> str:
        return f"<Descriptor {self.identity.key} records={len(self._records)}>"


def register(store: AnnotationStore, descriptor: Describable) -> ClassIdentity:
    """
    Append every record of ``descriptor`` to ``store``.

    Returns:
        The identity the records were appended under
    """
    count = 0
    for record in descriptor.describe():
        store.append(descriptor.identity, record)
        count += 1
    logger.debug("Registered %d records for %s", count, descriptor.identity.key)
    return descriptor.identity
