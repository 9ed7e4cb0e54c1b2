"""
Waymark faults - structured error types.

Faults are typed exceptions carrying a stable code, a domain and a
severity. Every fault raised by the resolver is FATAL: the registry is
either fully valid or composition does not complete.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
- ResolutionFault and its subclasses
- ConfigFault / ConfigInvalidFault
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
    DOMAIN_DEFAULTS,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    ResolutionFault,
    DuplicateErrorHandlerFault,
    MissingControllerFault,
    DuplicatePluginFault,
    DuplicateControllerFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    "DOMAIN_DEFAULTS",

    # Config
    "ConfigFault",
    "ConfigInvalidFault",

    # Resolution
    "ResolutionFault",
    "DuplicateErrorHandlerFault",
    "MissingControllerFault",
    "DuplicatePluginFault",
    "DuplicateControllerFault",
]
