"""
Waymark faults - Domain-specific fault types.

Provides concrete fault classes for:
- CONFIG faults
- REGISTRY (resolution) faults
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# REGISTRY Faults
# ============================================================================

class ResolutionFault(Fault):
    """
    Base class for faults raised while composing the registry.

    Every resolution fault aborts the whole pass; the dispatcher must not
    start on top of a registry that failed to compose.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.REGISTRY,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class DuplicateErrorHandlerFault(ResolutionFault):
    """A second ErrorHandler annotation was resolved."""

    def __init__(self, owner: str, method: str, existing: Optional[str] = None):
        self.owner = owner
        self.method = method
        self.existing = existing
        where = f" (already bound to {existing})" if existing else ""
        super().__init__(
            code="DUPLICATE_ERROR_HANDLER",
            message=f"Duplicated error handler {owner}.{method}{where}",
            metadata={"owner": owner, "method": method, "existing": existing},
        )


class MissingControllerFault(ResolutionFault):
    """A route annotation was found on a class without a Controller annotation."""

    def __init__(self, owner: str, method: str, http_method: str):
        self.owner = owner
        self.method = method
        self.http_method = http_method
        super().__init__(
            code="MISSING_CONTROLLER",
            message=(
                f"The class of route {http_method} {owner}.{method} "
                f"must be annotated with Controller"
            ),
            metadata={"owner": owner, "method": method, "http_method": http_method},
        )


class DuplicatePluginFault(ResolutionFault):
    """Two classes claimed the same plugin name (strict mode)."""

    def __init__(self, name: str, owner: str, existing: str):
        self.name = name
        self.owner = owner
        self.existing = existing
        super().__init__(
            code="DUPLICATE_PLUGIN",
            message=f"Plugin '{name}' claimed by {owner} is already bound to {existing}",
            metadata={"plugin": name, "owner": owner, "existing": existing},
        )


class DuplicateControllerFault(ResolutionFault):
    """A class carries more than one Controller annotation (strict mode)."""

    def __init__(self, owner: str, prefixes: list):
        self.owner = owner
        self.prefixes = prefixes
        super().__init__(
            code="DUPLICATE_CONTROLLER",
            message=f"Class {owner} is annotated with Controller {len(prefixes)} times",
            metadata={"owner": owner, "prefixes": prefixes},
        )
