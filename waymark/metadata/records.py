"""
Annotation records.

An annotation record is the raw, uninterpreted trace of one decorator
(or one builder call) applied to a class or to a method. Records are
collected by the AnnotationStore and interpreted only by the Resolver.
"""

from typing import Any, Callable, Optional, Union
from dataclasses import dataclass, field
from enum import Enum


class AnnotationKind(str, Enum):
    """Where an annotation was attached."""
    CLASS = "class"
    METHOD = "method"


class Tag(str, Enum):
    """Non-route annotation tags."""
    CONTROLLER = "Controller"
    PLUGIN = "Plugin"
    MIDDLEWARE = "Middleware"
    TEMPLATE = "Template"
    ERROR_HANDLER = "ErrorHandler"


class Method(str, Enum):
    """
    Route tags.

    Each value is both the annotation tag and the literal HTTP method
    stored in the route table. ``ALL`` matches any verb.
    """
    ALL = "ALL"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


ROUTE_TAGS = frozenset(m.value for m in Method)


def _tag_value(tag: Union[str, Enum]) -> str:
    return tag.value if isinstance(tag, Enum) else str(tag)


def _method_name_of(handler: Callable[..., Any], method_name: Optional[str]) -> str:
    if method_name:
        return method_name
    name = getattr(handler, "__name__", None)
    if not name or name == "<lambda>":
        raise ValueError(f"Handler {handler!r} has no usable name; pass method_name")
    return name


@dataclass(frozen=True)
class ClassIdentity:
    """
    Stable identity of an annotated class.

    Attributes:
        key: Explicit string identifier (equality and hashing use it alone)
        factory: Zero-argument callable building the singleton instance
    """
    key: str
    factory: Callable[[], Any] = field(compare=False, repr=False)

    @classmethod
    def of(cls, target: type) -> "ClassIdentity":
        """Derive an identity from a class (``module.QualName``)."""
        return cls(key=f"{target.__module__}.{target.__qualname__}", factory=target)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class AnnotationRecord:
    """
    One annotation attached to a class or to a method.

    Attributes:
        kind: CLASS or METHOD
        name: Tag ("Controller", "Plugin", "Middleware", "Template",
              "ErrorHandler" or a route method such as "GET")
        value: Optional payload (path, priority, plugin name, template path)
        method_name: Decorated method (METHOD records only)
        handler: Plain function captured at registration time, called with
                 the singleton as first argument (METHOD records only)
    """
    kind: AnnotationKind
    name: str
    value: Any = None
    method_name: Optional[str] = None
    handler: Optional[Callable[..., Any]] = field(default=None, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "kind", AnnotationKind(self.kind))
        object.__setattr__(self, "name", _tag_value(self.name))
        if self.kind == AnnotationKind.METHOD:
            if not self.method_name:
                raise ValueError(f"Method annotation '{self.name}' requires a method_name")
            if self.handler is None:
                raise ValueError(f"Method annotation '{self.name}' requires a handler")
        elif self.method_name is not None or self.handler is not None:
            raise ValueError(f"Class annotation '{self.name}' cannot target a method")

    @property
    def is_route(self) -> bool:
        return self.kind == AnnotationKind.METHOD and self.name in ROUTE_TAGS

    # ── Constructors ─────────────────────────────────────────────────────

    @classmethod
    def controller(cls, prefix: Optional[str] = None) -> "AnnotationRecord":
        return cls(AnnotationKind.CLASS, Tag.CONTROLLER.value, prefix)

    @classmethod
    def plugin(cls, name: str) -> "AnnotationRecord":
        return cls(AnnotationKind.CLASS, Tag.PLUGIN.value, name)

    @classmethod
    def route(
        cls,
        method: Union[str, Method],
        path: Optional[str],
        handler: Callable[..., Any],
        method_name: Optional[str] = None,
    ) -> "AnnotationRecord":
        """
        Build a route record.

        Raises:
            ValueError: If ``method`` is not a recognized route tag
        """
        tag = _tag_value(method).upper()
        if tag not in ROUTE_TAGS:
            raise ValueError(f"Unknown route method '{method}'")
        return cls(
            AnnotationKind.METHOD, tag, path,
            method_name=_method_name_of(handler, method_name),
            handler=handler,
        )

    @classmethod
    def middleware(
        cls,
        priority: float,
        handler: Callable[..., Any],
        method_name: Optional[str] = None,
    ) -> "AnnotationRecord":
        return cls(
            AnnotationKind.METHOD, Tag.MIDDLEWARE.value, priority,
            method_name=_method_name_of(handler, method_name),
            handler=handler,
        )

    @classmethod
    def template(
        cls,
        path: str,
        handler: Callable[..., Any],
        method_name: Optional[str] = None,
    ) -> "AnnotationRecord":
        return cls(
            AnnotationKind.METHOD, Tag.TEMPLATE.value, path,
            method_name=_method_name_of(handler, method_name),
            handler=handler,
        )

    @classmethod
    def error_handler(
        cls,
        handler: Callable[..., Any],
        method_name: Optional[str] = None,
    ) -> "AnnotationRecord":
        return cls(
            AnnotationKind.METHOD, Tag.ERROR_HANDLER.value,
            method_name=_method_name_of(handler, method_name),
            handler=handler,
        )

    def to_dict(self) -> dict:
        data = {"type": self.kind.value, "name": self.name}
        if self.value is not None:
            data["value"] = self.value
        if self.method_name is not None:
            data["fn"] = self.method_name
        return data
