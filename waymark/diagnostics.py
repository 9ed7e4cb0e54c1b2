"""
Diagnostics - debug renderings of raw annotations and resolved tables.

None of these functions mutate the store or the resolved registry.
"""

from typing import Any, Dict, Iterable, List, NamedTuple
import logging

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from .metadata import AnnotationStore
from .resolver import ResolvedRegistry, RouteEntry, describe_callable


logger = logging.getLogger("waymark.diagnostics")

_RULE = "-" * 22


def annotations_to_dict(store: AnnotationStore) -> Dict[str, Any]:
    """Raw class and method records of every known class."""
    return {
        identity.key: {
            "class": [r.to_dict() for r in store.class_records(identity)],
            "methods": {
                name: [r.to_dict() for r in records]
                for name, records in store.method_records(identity).items()
            },
        }
        for identity in store.known_classes()
    }


def dump_annotations(store: AnnotationStore) -> str:
    """Render every known class's raw records."""
    lines: List[str] = []

    for key, data in annotations_to_dict(store).items():
        lines.append(f"{_RULE} {key}")
        lines.append("class annotations:")
        if not data["class"]:
            lines.append("  (none)")
        for record in data["class"]:
            lines.append(f"  {_format_record(record)}")

        lines.append("method annotations:")
        if not data["methods"]:
            lines.append("  (none)")
        for name, records in data["methods"].items():
            lines.append(f"  {name}:")
            for record in records:
                lines.append(f"    {_format_record(record)}")

    return "\n".join(lines)


def _format_record(record: Dict[str, Any]) -> str:
    if "value" in record:
        return f"{record['name']}({record['value']!r})"
    return f"{record['name']}()"


def dump_results(resolved: ResolvedRegistry) -> str:
    """Render the four resolved tables."""
    lines = ["plugins:"]
    if not resolved.plugins:
        lines.append("  (none)")
    for name, instance in resolved.plugins.items():
        lines.append(f"  {name} -> {type(instance).__name__}")

    lines.append("middlewares:")
    if not resolved.middlewares:
        lines.append("  (none)")
    for entry in resolved.middlewares:
        lines.append(f"  [{entry.priority}] {describe_callable(entry.callback)}")

    lines.append("routes:")
    if not resolved.routes:
        lines.append("  (none)")
    width = max((len(r.method) for r in resolved.routes), default=0)
    for route in resolved.routes:
        line = f"  {route.method.ljust(width)} {route.path} -> {describe_callable(route.callback)}"
        if route.template:
            line += f" [{route.template}]"
        lines.append(line)

    handler = resolved.error_handler
    lines.append(f"errorHandler: {describe_callable(handler) if handler is not None else '(none)'}")
    return "\n".join(lines)


class MissingTemplate(NamedTuple):
    route: RouteEntry
    template: str


def check_templates(
    resolved: ResolvedRegistry,
    template_dirs: Iterable[str],
) -> List[MissingTemplate]:
    """
    Find route templates that no template directory provides.

    Templates are located through a jinja2 FileSystemLoader; they are
    never compiled or rendered.
    """
    env = Environment(loader=FileSystemLoader(list(template_dirs)))
    missing: List[MissingTemplate] = []

    for route in resolved.routes:
        if route.template is None:
            continue
        try:
            env.loader.get_source(env, route.template)
        except TemplateNotFound:
            logger.warning(
                "Template %r for %s %s not found", route.template, route.method, route.path,
            )
            missing.append(MissingTemplate(route, route.template))

    return missing
