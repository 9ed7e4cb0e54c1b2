"""
Annotation Decorators

Class and method decorators that append records to an AnnotationStore.

Method decorators run before their class exists, so they wrap the
function in a carrier object. When the class body is turned into a class
the carrier's ``__set_name__`` hook appends the pending records under the
owner's identity and puts the plain function back on the class.
"""

from typing import Any, Callable, List, Optional, Tuple, TypeVar, Union
import functools

from .metadata import (
    AnnotationKind,
    AnnotationRecord,
    AnnotationStore,
    ClassIdentity,
    Method,
    Tag,
    ROUTE_TAGS,
)


F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)


class _PendingAnnotations:
    """
    Carrier for method annotations awaiting their owner class.

    Records are appended in decorator application order (innermost
    decorator first).
    """

    def __init__(self, func: Callable[..., Any]):
        self.func = func
        self.pending: List[Tuple[AnnotationStore, str, Any]] = []
        functools.update_wrapper(self, func)

    def add(self, store: AnnotationStore, tag: str, value: Any) -> "_PendingAnnotations":
        self.pending.append((store, tag, value))
        return self

    def __set_name__(self, owner: type, name: str) -> None:
        identity = ClassIdentity.of(owner)
        for store, tag, value in self.pending:
            store.append(identity, AnnotationRecord(
                AnnotationKind.METHOD, tag, value,
                method_name=name,
                handler=self.func,
            ))
        setattr(owner, name, self.func)

    def __call__(self, *args, **kwargs):
        return self.func(*args, **kwargs)


def _method_annotation(store: AnnotationStore, tag: str, value: Any = None) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        carrier = func if isinstance(func, _PendingAnnotations) else _PendingAnnotations(func)
        return carrier.add(store, tag, value)  # type: ignore[return-value]
    return decorator


def _class_annotation(store: AnnotationStore, record: AnnotationRecord) -> Callable[[C], C]:
    def decorator(cls: C) -> C:
        store.append(ClassIdentity.of(cls), record)
        return cls
    return decorator


class Annotator:
    """
    Decorator factory bound to one AnnotationStore.

    Example:
        store = AnnotationStore()
        mark = Annotator(store)

        @mark.controller("users")
        class UsersController:

            @mark.get("/:id")
            @mark.template("users/show.html")
            def show(self, request):
                ...

            @mark.middleware(10)
            def audit(self, request, next):
                ...
    """

    def __init__(self, store: AnnotationStore):
        self.store = store

    # ── Class annotations ────────────────────────────────────────────────

    def controller(self, prefix: Optional[str] = None) -> Callable[[C], C]:
        """Mark a class as a controller with an optional path prefix."""
        return _class_annotation(self.store, AnnotationRecord.controller(prefix))

    def plugin(self, name: str) -> Callable[[C], C]:
        """Bind the class singleton under ``name``."""
        return _class_annotation(self.store, AnnotationRecord.plugin(name))

    # ── Method annotations ───────────────────────────────────────────────

    def middleware(self, priority: float) -> Callable[[F], F]:
        """Register the method in the middleware chain."""
        return _method_annotation(self.store, Tag.MIDDLEWARE.value, priority)

    def template(self, path: str) -> Callable[[F], F]:
        """Attach a template path to the route on the same method."""
        return _method_annotation(self.store, Tag.TEMPLATE.value, path)

    def error_handler(self) -> Callable[[F], F]:
        """Register the method as the application error handler."""
        return _method_annotation(self.store, Tag.ERROR_HANDLER.value)

    def route(self, method: Union[str, Method], path: Optional[str] = None) -> Callable[[F], F]:
        """
        Generic route decorator.

        Raises:
            ValueError: If ``method`` is not a recognized route tag
        """
        tag = (method.value if isinstance(method, Method) else str(method)).upper()
        if tag not in ROUTE_TAGS:
            raise ValueError(f"Unknown route method '{method}'")
        return _method_annotation(self.store, tag, path)

    def all(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.ALL, path)

    def get(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.GET, path)

    def post(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.POST, path)

    def put(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.PUT, path)

    def delete(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.DELETE, path)

    def patch(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.PATCH, path)

    def head(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.HEAD, path)

    def options(self, path: Optional[str] = None) -> Callable[[F], F]:
        return self.route(Method.OPTIONS, path)
