"""Waymark CLI - Main Entry Point.

Commands:
    annotations - Dump the raw annotation records of a target
    results     - Compose a target and dump the resolved tables
    check       - Compose a target and report missing templates
"""

import dataclasses
import json
import logging
import sys
from typing import Optional, Tuple

import click

from . import __version__, __cli_name__
from .utils.colors import (
    success, error, warning, dim, section, kv, bullet,
    _ARROW, _CHECK, _CROSS,
)
from .utils.targets import load_target, store_of
from ..config import ConfigLoader, ResolverConfig
from ..diagnostics import annotations_to_dict, check_templates, dump_annotations, dump_results
from ..faults import Fault
from ..registry import Registry
from ..resolver import ResolvedRegistry, Resolver


logger = logging.getLogger("waymark.cli")


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML/JSON config file')
@click.option('--env-file', type=click.Path(dir_okay=False), help='.env file with WAYMARK_* keys')
@click.option('--path', '-p', 'search_path', default=None,
              help='Directory prepended to sys.path before importing targets')
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[str], env_file: Optional[str],
        search_path: Optional[str]):
    """Inspect annotation registries.

    \b
    TARGET is 'package.module:attribute' naming a Registry
    or an AnnotationStore.

    \b
    Quick start:
      waymark annotations myapp.routes:registry
      waymark results myapp.routes:registry
      waymark check myapp.routes:registry -t templates
    """
    ctx.ensure_object(dict)

    try:
        loader = ConfigLoader.load(
            paths=[config_path] if config_path else None,
            env_file=env_file,
        )
        config = loader.get_resolver_config()
    except Fault as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("waymark").setLevel(level)

    ctx.obj['config'] = config
    # a Registry target keeps its own config unless a source set one
    ctx.obj['config_loaded'] = bool(loader.to_dict())
    ctx.obj['search_path'] = search_path


def _load(ctx, target: str):
    try:
        obj = load_target(target, ctx.obj.get('search_path'))
        logger.debug("Loaded target %s", target)
        return obj
    except (ValueError, ImportError) as e:
        error(f"  {_CROSS} Cannot load target: {e}")
        sys.exit(1)


def _config_for(ctx, obj) -> ResolverConfig:
    if isinstance(obj, Registry) and not ctx.obj.get('config_loaded'):
        return obj.config
    return ctx.obj['config']


def _compose(obj, config: ResolverConfig) -> ResolvedRegistry:
    resolver = Resolver(store_of(obj), config)
    try:
        return resolver.compose()
    except Fault as e:
        error(f"  {_CROSS} Composition failed: {e}")
        for key, value in e.metadata.items():
            if value is not None:
                error(f"      {key}: {value}")
        sys.exit(1)


@cli.command('annotations')
@click.argument('target')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
@click.pass_context
def annotations(ctx, target: str, json_output: bool):
    """
    Dump the raw annotation records of TARGET.

    Examples:
      waymark annotations myapp.routes:registry
      waymark annotations myapp.routes:store --json-output
    """
    store = store_of(_load(ctx, target))

    if json_output:
        click.echo(json.dumps(annotations_to_dict(store), indent=2, default=str))
        return

    if not len(store):
        warning("No annotated classes.")
        return

    click.echo(dump_annotations(store))


@cli.command('results')
@click.argument('target')
@click.option('--json-output', '-j', is_flag=True, help='Output as JSON')
@click.option('--strict', is_flag=True, help='Fail on duplicate plugins and controllers')
@click.pass_context
def results(ctx, target: str, json_output: bool, strict: bool):
    """
    Compose TARGET and dump the resolved tables.

    Examples:
      waymark results myapp.routes:registry
      waymark results myapp.routes:registry --strict -j
    """
    obj = _load(ctx, target)
    config = _config_for(ctx, obj)
    if strict:
        config = dataclasses.replace(config, strict=True)

    resolved = _compose(obj, config)

    if json_output:
        click.echo(json.dumps(resolved.to_dict(), indent=2, default=str))
        return

    click.echo(dump_results(resolved))


@cli.command('check')
@click.argument('target')
@click.option('--template-dir', '-t', 'template_dirs', multiple=True,
              type=click.Path(file_okay=False), help='Template directory (repeatable)')
@click.pass_context
def check(ctx, target: str, template_dirs: Tuple[str, ...]):
    """
    Compose TARGET and verify that every route template exists.

    Exits with status 1 when a template is missing.

    Examples:
      waymark check myapp.routes:registry -t templates
    """
    obj = _load(ctx, target)
    config = _config_for(ctx, obj)
    dirs = list(template_dirs) or list(config.template_dirs)

    resolved = _compose(obj, config)

    section("Registry")
    kv("Plugins", str(len(resolved.plugins)))
    kv("Middlewares", str(len(resolved.middlewares)))
    kv("Routes", str(len(resolved.routes)))
    kv("Error handler", "yes" if resolved.error_handler is not None else "no")

    templated = [r for r in resolved.routes if r.template]
    if not templated:
        click.echo()
        success(f"  {_CHECK} No route templates to check")
        return

    if not dirs:
        error(f"  {_CROSS} {len(templated)} routes use templates but no template directory was given")
        sys.exit(1)

    missing = check_templates(resolved, dirs)
    click.echo()
    if not missing:
        success(f"  {_CHECK} All {len(templated)} templates found")
        return

    error(f"  {_CROSS} {len(missing)} missing template(s):")
    for item in missing:
        bullet(f"{item.route.method} {item.route.path} {_ARROW} {item.template}", fg="red")
    dim(f"  searched: {', '.join(dirs)}")
    sys.exit(1)


def main():
    """Entry point for `waymark` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
