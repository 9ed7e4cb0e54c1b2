"""
Registry - explicitly constructed owner of a store and its resolver.

A Registry is created by the bootstrap code and handed to whatever needs
it (decorated modules, the dispatcher). Several registries can coexist,
each with its own store and resolved tables.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

from .config import ConfigLoader, ResolverConfig
from .decorators import Annotator
from .descriptors import Describable, register
from .metadata import AnnotationStore, ClassIdentity
from .resolver import (
    Callback,
    MiddlewareEntry,
    ResolvedRegistry,
    Resolver,
    RouteEntry,
)


logger = logging.getLogger("waymark.registry")


class Registry(Annotator):
    """
    Annotation store + resolver behind one object.

    Decorator methods (``controller``, ``plugin``, ``get``, ...) come
    from Annotator and record into this registry's store.

    Example:
        registry = Registry()

        @registry.plugin("cache")
        class Cache:
            ...

        @registry.controller("users")
        class Users:
            @registry.get("/:id")
            def show(self, request):
                ...

        registry.compose()
        registry.routes[0].path  # "/users/:id"
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        store: Optional[AnnotationStore] = None,
    ):
        super().__init__(store if store is not None else AnnotationStore())
        self.config = config or ResolverConfig()
        self.resolver = Resolver(self.store, self.config)

    @classmethod
    def from_config(
        cls,
        paths: Optional[List[str]] = None,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "Registry":
        """Create a registry configured from files, .env and environment."""
        loader = ConfigLoader.load(paths=paths, env_file=env_file, overrides=overrides)
        config = loader.get_resolver_config()
        logger.debug(
            "Registry config: strict=%s template_dirs=%s", config.strict, config.template_dirs,
        )
        return cls(config=config)

    def register(self, descriptor: Describable) -> ClassIdentity:
        """Append a descriptor's records to this registry's store."""
        return register(self.store, descriptor)

    def compose(self) -> ResolvedRegistry:
        """Run the one-shot resolution pass."""
        return self.resolver.compose()

    @property
    def is_composed(self) -> bool:
        return self.resolver.is_composed

    @property
    def resolved(self) -> ResolvedRegistry:
        resolved = self.resolver.resolved
        if resolved is None:
            raise RuntimeError("Registry has not been composed; call compose() first")
        return resolved

    # ── Resolved tables ──────────────────────────────────────────────────

    @property
    def plugins(self) -> Mapping[str, Any]:
        return self.resolved.plugins

    @property
    def middlewares(self) -> Tuple[MiddlewareEntry, ...]:
        return self.resolved.middlewares

    @property
    def routes(self) -> Tuple[RouteEntry, ...]:
        return self.resolved.routes

    @property
    def error_callback(self) -> Optional[Callback]:
        # error_handler is the inherited decorator
        return self.resolved.error_handler

    def __repr__(self) -> str:
        state = "composed" if self.is_composed else "pending"
        return f"<Registry {state} classes={len(self.store)}>"
