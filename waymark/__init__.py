"""
Waymark - annotation registry for class-based web routing.

Collects declarative annotations (controllers, routes, middleware,
plugins, templates, error handlers) and resolves them, once, into the
dispatch tables an HTTP dispatcher consumes:

- Metadata: raw annotation records and the store collecting them
- Decorators / Descriptors: two ways to produce records
- Resolver: one-shot composition into plugins, middlewares, routes
  and the error handler
- Faults: structured configuration errors
"""

__version__ = "0.1.0"

from .config import ConfigLoader, ResolverConfig
from .metadata import (
    AnnotationKind,
    AnnotationRecord,
    AnnotationStore,
    ClassIdentity,
    Method,
    Tag,
    join_path,
)
from .decorators import Annotator
from .descriptors import Describable, Descriptor, register
from .resolver import (
    MiddlewareEntry,
    ResolvedRegistry,
    Resolver,
    RouteEntry,
)
from .registry import Registry
from .diagnostics import (
    annotations_to_dict,
    check_templates,
    dump_annotations,
    dump_results,
)
from .faults import (
    Fault,
    FaultDomain,
    Severity,
    ResolutionFault,
    DuplicateErrorHandlerFault,
    MissingControllerFault,
    DuplicatePluginFault,
    DuplicateControllerFault,
    ConfigInvalidFault,
)

__all__ = [
    "__version__",

    # Config
    "ConfigLoader",
    "ResolverConfig",

    # Metadata
    "AnnotationKind",
    "AnnotationRecord",
    "AnnotationStore",
    "ClassIdentity",
    "Method",
    "Tag",
    "join_path",

    # Producers
    "Annotator",
    "Describable",
    "Descriptor",
    "register",

    # Resolution
    "MiddlewareEntry",
    "ResolvedRegistry",
    "Resolver",
    "RouteEntry",
    "Registry",

    # Diagnostics
    "annotations_to_dict",
    "check_templates",
    "dump_annotations",
    "dump_results",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ResolutionFault",
    "DuplicateErrorHandlerFault",
    "MissingControllerFault",
    "DuplicatePluginFault",
    "DuplicateControllerFault",
    "ConfigInvalidFault",
]
