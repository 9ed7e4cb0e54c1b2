"""Resolve ``package.module:attribute`` CLI targets."""

from typing import Optional, Union
import importlib
import sys
from pathlib import Path

from ...metadata import AnnotationStore
from ...registry import Registry


Target = Union[Registry, AnnotationStore]


def load_target(target: str, search_path: Optional[str] = None) -> Target:
    """
    Import ``module:attribute`` and return the Registry or store it names.

    Raises:
        ValueError: If the target is malformed or names another kind of object
        ImportError: If the module cannot be imported
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Target must look like 'package.module:attribute', got '{target}'")

    if search_path is not None:
        root = str(Path(search_path).resolve())
        if root not in sys.path:
            sys.path.insert(0, root)

    module = importlib.import_module(module_name)

    obj = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"Module '{module_name}' has no attribute '{attr}'") from None

    if not isinstance(obj, (Registry, AnnotationStore)):
        raise ValueError(
            f"'{target}' is a {type(obj).__name__}, expected Registry or AnnotationStore"
        )
    return obj


def store_of(target: Target) -> AnnotationStore:
    return target.store if isinstance(target, Registry) else target
