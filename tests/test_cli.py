"""
CLI commands: annotations, results, check.
"""

import importlib
import json
import logging
import textwrap
import uuid

import pytest
from click.testing import CliRunner

from waymark.cli.__main__ import cli


APP_SOURCE = '''
from waymark import Registry

registry = Registry()
not_a_registry = {"routes": []}

@registry.plugin("cache")
class Cache:
    pass

@registry.controller("users")
class Users:
    @registry.get("/:id")
    @registry.template("users/show.html")
    def show(self, user_id):
        return user_id

    @registry.middleware(5)
    def audit(self, request, next):
        return next(request)

class Errors:
    @registry.error_handler()
    def handle(self, error):
        return error
'''

ORPHAN_SOURCE = '''
from waymark import Registry

registry = Registry()

class Orphan:
    @registry.get("/lost")
    def lost(self):
        pass
'''

DUPLICATE_PLUGIN_SOURCE = '''
from waymark import Registry

registry = Registry()

@registry.plugin("db")
class Primary:
    pass

@registry.plugin("db")
class Replica:
    pass
'''

STRICT_REGISTRY_SOURCE = '''
from waymark import Registry, ResolverConfig

registry = Registry(config=ResolverConfig(strict=True))

@registry.plugin("db")
class Primary:
    pass

@registry.plugin("db")
class Replica:
    pass
'''

PLAIN_SOURCE = '''
from waymark import Registry

registry = Registry()

@registry.controller("health")
class Health:
    @registry.get("/ping")
    def ping(self):
        return "pong"
'''

EMPTY_SOURCE = '''
from waymark import AnnotationStore

store = AnnotationStore()
'''


# ============================================================================
# Helpers
# ============================================================================

@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logging.getLogger("waymark").setLevel(logging.NOTSET)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def write_app(tmp_path):
    """Write an app module under a unique name and return its import name."""
    def write(source: str) -> str:
        name = f"wm_app_{uuid.uuid4().hex}"
        (tmp_path / f"{name}.py").write_text(textwrap.dedent(source))
        importlib.invalidate_caches()
        return name
    return write


def invoke(runner, tmp_path, *args, **kwargs):
    return runner.invoke(cli, ["--path", str(tmp_path), *args], obj={}, **kwargs)


# ============================================================================
# annotations
# ============================================================================

class TestAnnotationsCommand:

    def test_text(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "annotations", f"{module}:registry")

        assert result.exit_code == 0, result.output
        assert f"{module}.Users" in result.output
        assert "Controller('users')" in result.output
        assert "Template('users/show.html')" in result.output
        assert "GET('/:id')" in result.output
        assert "ErrorHandler()" in result.output

    def test_json(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "annotations", f"{module}:registry", "--json-output")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert list(data) == [f"{module}.Cache", f"{module}.Users", f"{module}.Errors"]
        assert data[f"{module}.Cache"] == {
            "class": [{"type": "class", "name": "Plugin", "value": "cache"}],
            "methods": {},
        }
        assert [r["name"] for r in data[f"{module}.Users"]["methods"]["show"]] == ["Template", "GET"]

    def test_store_target(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "annotations", f"{module}:registry.store", "-j")

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)) == 3

    def test_empty_store(self, runner, tmp_path, write_app):
        module = write_app(EMPTY_SOURCE)
        result = invoke(runner, tmp_path, "annotations", f"{module}:store")

        assert result.exit_code == 0
        assert "No annotated classes." in result.output


# ============================================================================
# results
# ============================================================================

class TestResultsCommand:

    def test_text(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:registry")

        assert result.exit_code == 0, result.output
        assert "cache -> Cache" in result.output
        assert "[5] Users.audit" in result.output
        assert "GET /users/:id -> Users.show [users/show.html]" in result.output
        assert "errorHandler: Errors.handle" in result.output

    def test_json(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:registry", "-j")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["plugins"] == {"cache": "Cache"}
        assert data["routes"] == [{
            "method": "GET",
            "path": "/users/:id",
            "callback": "Users.show",
            "template": "users/show.html",
            "owner": f"{module}.Users",
        }]
        assert data["middlewares"][0]["priority"] == 5
        assert data["error_handler"] == "Errors.handle"

    def test_missing_controller(self, runner, tmp_path, write_app):
        module = write_app(ORPHAN_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:registry")

        assert result.exit_code == 1
        assert "MISSING_CONTROLLER" in result.output
        assert "GET" in result.output

    def test_strict_flag(self, runner, tmp_path, write_app):
        module = write_app(DUPLICATE_PLUGIN_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:registry", "--strict")

        assert result.exit_code == 1
        assert "DUPLICATE_PLUGIN" in result.output

    def test_strict_from_environment(self, runner, tmp_path, write_app):
        module = write_app(DUPLICATE_PLUGIN_SOURCE)
        result = invoke(
            runner, tmp_path, "results", f"{module}:registry",
            env={"WAYMARK_STRICT": "true"},
        )

        assert result.exit_code == 1
        assert "DUPLICATE_PLUGIN" in result.output

    def test_registry_config_is_used(self, runner, tmp_path, write_app):
        module = write_app(STRICT_REGISTRY_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:registry")

        assert result.exit_code == 1
        assert "DUPLICATE_PLUGIN" in result.output

    def test_loaded_config_overrides_registry_config(self, runner, tmp_path, write_app):
        module = write_app(STRICT_REGISTRY_SOURCE)
        result = invoke(
            runner, tmp_path, "results", f"{module}:registry",
            env={"WAYMARK_STRICT": "false"},
        )

        assert result.exit_code == 0, result.output
        assert "db -> Replica" in result.output

    def test_invalid_config_file(self, runner, tmp_path, write_app):
        module = write_app(PLAIN_SOURCE)
        config = tmp_path / "bad.yaml"
        config.write_text("strict: maybe\n")
        result = runner.invoke(
            cli, ["--config", str(config), "--path", str(tmp_path), "results", f"{module}:registry"],
            obj={},
        )

        assert result.exit_code == 1
        assert "CONFIG_INVALID" in result.output


# ============================================================================
# check
# ============================================================================

class TestCheckCommand:

    def test_missing_template(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        views = tmp_path / "views"
        views.mkdir()
        result = invoke(runner, tmp_path, "check", f"{module}:registry", "-t", str(views))

        assert result.exit_code == 1
        assert "1 missing template(s)" in result.output
        assert "GET /users/:id" in result.output
        assert "users/show.html" in result.output

    def test_all_templates_found(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        (tmp_path / "views" / "users").mkdir(parents=True)
        (tmp_path / "views" / "users" / "show.html").write_text("<p>{{ user }}</p>")
        result = invoke(runner, tmp_path, "check", f"{module}:registry", "-t", str(tmp_path / "views"))

        assert result.exit_code == 0, result.output
        assert "All 1 templates found" in result.output
        assert "Routes" in result.output

    def test_template_dirs_from_environment(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        (tmp_path / "views" / "users").mkdir(parents=True)
        (tmp_path / "views" / "users" / "show.html").write_text("")
        result = invoke(
            runner, tmp_path, "check", f"{module}:registry",
            env={"WAYMARK_TEMPLATE_DIRS": str(tmp_path / "views")},
        )

        assert result.exit_code == 0, result.output

    def test_no_template_directory(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "check", f"{module}:registry")

        assert result.exit_code == 1
        assert "no template directory" in result.output

    def test_no_templates_used(self, runner, tmp_path, write_app):
        module = write_app(PLAIN_SOURCE)
        result = invoke(runner, tmp_path, "check", f"{module}:registry")

        assert result.exit_code == 0, result.output
        assert "No route templates to check" in result.output


# ============================================================================
# Targets
# ============================================================================

class TestTargets:

    def test_malformed_target(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "annotations", "no_colon_here")
        assert result.exit_code == 1
        assert "Cannot load target" in result.output

    def test_unknown_module(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "annotations", f"wm_missing_{uuid.uuid4().hex}:registry")
        assert result.exit_code == 1
        assert "Cannot load target" in result.output

    def test_unknown_attribute(self, runner, tmp_path, write_app):
        module = write_app(PLAIN_SOURCE)
        result = invoke(runner, tmp_path, "annotations", f"{module}:nothing")
        assert result.exit_code == 1
        assert "has no attribute" in result.output

    def test_wrong_object_type(self, runner, tmp_path, write_app):
        module = write_app(APP_SOURCE)
        result = invoke(runner, tmp_path, "results", f"{module}:not_a_registry")
        assert result.exit_code == 1
        assert "expected Registry or AnnotationStore" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
