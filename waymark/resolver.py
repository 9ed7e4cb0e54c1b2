"""
Resolver - one-shot composition of annotation records into dispatch tables.

Reads an AnnotationStore and produces a ResolvedRegistry:
- plugins: plugin name -> singleton instance
- middlewares: callbacks sorted ascending by priority (stable)
- routes: (method, path, callback, template) in traversal order
- error_handler: at most one callback
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from dataclasses import dataclass, field
from types import MappingProxyType
import functools
import logging

from .config import ResolverConfig
from .faults import (
    DuplicateControllerFault,
    DuplicateErrorHandlerFault,
    DuplicatePluginFault,
    MissingControllerFault,
)
from .metadata import (
    AnnotationRecord,
    AnnotationStore,
    ClassIdentity,
    Method,
    Tag,
    join_path,
)


logger = logging.getLogger("waymark.resolver")

Callback = Callable[..., Any]


def describe_callable(fn: Any) -> str:
    """Readable name for a bound callback (``UsersController.show``)."""
    func = getattr(fn, "__func__", fn)
    name = getattr(func, "__qualname__", None) or getattr(func, "__name__", None)
    return name or repr(fn)


@dataclass(frozen=True)
class RouteEntry:
    """
    A resolved route.

    Attributes:
        method: HTTP method tag ("ALL" matches any verb)
        path: Joined path ("/" + controller prefix + route path)
        callback: Handler bound to the controller singleton
        template: Template path from a sibling Template annotation
        owner: Key of the declaring class
        handler_name: Name of the decorated method
    """
    method: str
    path: str
    callback: Callback = field(compare=False)
    template: Optional[str] = None
    owner: str = ""
    handler_name: str = ""

    def accepts(self, http_method: str) -> bool:
        """Whether this route answers ``http_method``."""
        return self.method == Method.ALL.value or self.method == http_method.upper()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "callback": describe_callable(self.callback),
            "template": self.template,
            "owner": self.owner,
        }


@dataclass(frozen=True)
class MiddlewareEntry:
    """A resolved middleware callback and its priority."""
    callback: Callback = field(compare=False)
    priority: float = 0
    owner: str = ""
    handler_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "callback": describe_callable(self.callback),
            "priority": self.priority,
            "owner": self.owner,
        }


@dataclass(frozen=True)
class ResolvedRegistry:
    """
    Finalized dispatch tables. Immutable once built.

    Attributes:
        plugins: Plugin name -> singleton instance
        middlewares: Middleware entries, ascending priority
        routes: Route entries in resolution order
        error_handler: The single error handler, if any
        instances: Class key -> singleton instance
    """
    plugins: Mapping[str, Any]
    middlewares: Tuple[MiddlewareEntry, ...]
    routes: Tuple[RouteEntry, ...]
    error_handler: Optional[Callback] = None
    instances: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get_plugin(self, name: str, default: Any = None) -> Any:
        return self.plugins.get(name, default)

    def routes_for(self, http_method: str) -> List[RouteEntry]:
        """Routes answering ``http_method``, including ``ALL`` routes."""
        return [r for r in self.routes if r.accepts(http_method)]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for inspection/debugging."""
        return {
            "plugins": {
                name: type(instance).__name__
                for name, instance in self.plugins.items()
            },
            "middlewares": [m.to_dict() for m in self.middlewares],
            "routes": [r.to_dict() for r in self.routes],
            "error_handler": (
                describe_callable(self.error_handler)
                if self.error_handler is not None else None
            ),
        }


@dataclass
class _Accumulator:
    """Mutable state of a single composition pass."""
    plugins: Dict[str, Any] = field(default_factory=dict)
    plugin_owners: Dict[str, str] = field(default_factory=dict)
    middlewares: List[MiddlewareEntry] = field(default_factory=list)
    routes: List[RouteEntry] = field(default_factory=list)
    error_handler: Optional[Callback] = None
    error_handler_owner: Optional[str] = None
    instances: Dict[str, Any] = field(default_factory=dict)


def _bind(handler: Callback, instance: Any) -> Callback:
    """Bind a captured handler to its singleton."""
    binder = getattr(handler, "__get__", None)
    if binder is not None:
        return binder(instance, type(instance))
    return functools.partial(handler, instance)


class Resolver:
    """
    Composes an AnnotationStore into a ResolvedRegistry.

    Composition runs once. A second ``compose()`` returns the registry
    built by the first one without instantiating or appending anything.

    Raises (from ``compose``):
        DuplicateErrorHandlerFault: A second ErrorHandler was found
        MissingControllerFault: A route lives on a class without Controller
        DuplicatePluginFault: Plugin name reused (strict mode)
        DuplicateControllerFault: Several Controller annotations (strict mode)

    Example:
        resolver = Resolver(store)
        resolved = resolver.compose()
        for route in resolved.routes:
            dispatcher.add(route.method, route.path, route.callback)
    """

    def __init__(self, store: AnnotationStore, config: Optional[ResolverConfig] = None):
        self.store = store
        self.config = config or ResolverConfig()
        self._resolved: Optional[ResolvedRegistry] = None

    @property
    def resolved(self) -> Optional[ResolvedRegistry]:
        """The composed registry, or None before composition."""
        return self._resolved

    @property
    def is_composed(self) -> bool:
        return self._resolved is not None

    def compose(self) -> ResolvedRegistry:
        """
        Resolve every known class into the dispatch tables.

        Nothing is published unless the whole pass succeeds.
        """
        if self._resolved is not None:
            logger.warning("Registry already composed, ignoring repeated compose()")
            return self._resolved

        state = _Accumulator()
        for identity in self.store.known_classes():
            self._resolve_class(identity, state)

        # sorted() is stable: equal priorities keep registration order
        middlewares = sorted(state.middlewares, key=lambda m: m.priority)

        self._resolved = ResolvedRegistry(
            plugins=MappingProxyType(dict(state.plugins)),
            middlewares=tuple(middlewares),
            routes=tuple(state.routes),
            error_handler=state.error_handler,
            instances=MappingProxyType(dict(state.instances)),
        )

        logger.info(
            "Composed registry: %d classes, %d plugins, %d middlewares, %d routes, error handler %s",
            len(state.instances),
            len(state.plugins),
            len(middlewares),
            len(state.routes),
            "set" if state.error_handler is not None else "unset",
        )
        return self._resolved

    def _resolve_class(self, identity: ClassIdentity, state: _Accumulator) -> None:
        instance = identity.factory()
        state.instances[identity.key] = instance

        controller = self._scan_class_records(identity, instance, state)

        for method_name, group in self.store.method_records(identity).items():
            for record in group:
                callback = _bind(record.handler, instance)

                if record.name == Tag.ERROR_HANDLER.value:
                    self._bind_error_handler(identity, record, callback, state)
                elif record.name == Tag.MIDDLEWARE.value:
                    state.middlewares.append(MiddlewareEntry(
                        callback=callback,
                        priority=record.value,
                        owner=identity.key,
                        handler_name=method_name,
                    ))
                    logger.debug(
                        "Middleware %s.%s (priority %s)",
                        identity.key, method_name, record.value,
                    )
                elif record.is_route:
                    state.routes.append(
                        self._build_route(identity, controller, record, group, callback)
                    )
                elif record.name != Tag.TEMPLATE.value:
                    logger.warning(
                        "Ignoring unknown annotation %r on %s.%s",
                        record.name, identity.key, method_name,
                    )

    def _scan_class_records(
        self,
        identity: ClassIdentity,
        instance: Any,
        state: _Accumulator,
    ) -> Optional[AnnotationRecord]:
        """Bind plugins and return the active Controller record."""
        controllers: List[AnnotationRecord] = []

        for record in self.store.class_records(identity):
            if record.name == Tag.PLUGIN.value and record.value:
                self._bind_plugin(identity, record.value, instance, state)
            elif record.name == Tag.CONTROLLER.value:
                controllers.append(record)

        if len(controllers) > 1:
            prefixes = [c.value for c in controllers]
            if self.config.strict:
                raise DuplicateControllerFault(identity.key, prefixes)
            logger.warning(
                "Class %s has %d Controller annotations, using prefix %r",
                identity.key, len(controllers), prefixes[-1],
            )

        return controllers[-1] if controllers else None

    def _bind_plugin(
        self,
        identity: ClassIdentity,
        name: str,
        instance: Any,
        state: _Accumulator,
    ) -> None:
        existing = state.plugin_owners.get(name)
        if existing is not None:
            if self.config.strict:
                raise DuplicatePluginFault(name, identity.key, existing)
            logger.warning(
                "Plugin '%s' rebound from %s to %s", name, existing, identity.key,
            )

        state.plugins[name] = instance
        state.plugin_owners[name] = identity.key
        logger.debug("Plugin '%s' -> %s", name, identity.key)

    def _bind_error_handler(
        self,
        identity: ClassIdentity,
        record: AnnotationRecord,
        callback: Callback,
        state: _Accumulator,
    ) -> None:
        if state.error_handler is not None:
            raise DuplicateErrorHandlerFault(
                identity.key, record.method_name, existing=state.error_handler_owner,
            )
        state.error_handler = callback
        state.error_handler_owner = f"{identity.key}.{record.method_name}"
        logger.debug("Error handler %s", state.error_handler_owner)

    def _build_route(
        self,
        identity: ClassIdentity,
        controller: Optional[AnnotationRecord],
        record: AnnotationRecord,
        group: Tuple[AnnotationRecord, ...],
        callback: Callback,
    ) -> RouteEntry:
        if controller is None:
            raise MissingControllerFault(identity.key, record.method_name, record.name)

        template_record = next(
            (r for r in group if r.name == Tag.TEMPLATE.value), None
        )
        template = template_record.value if template_record is not None else None
        prefix = controller.value or ""
        path = join_path("/", prefix, record.value or "")

        logger.debug(
            "Route %s %s -> %s.%s", record.name, path, identity.key, record.method_name,
        )
        return RouteEntry(
            method=record.name,
            path=path,
            callback=callback,
            template=template,
            owner=identity.key,
            handler_name=record.method_name,
        )
