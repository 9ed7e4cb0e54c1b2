"""
Structural path joining.
"""

import pytest

from waymark.metadata import join_path


@pytest.mark.parametrize("parts, expected", [
    (("/", "users", "/:id"), "/users/:id"),
    (("/", "", "/"), "/"),
    (("/", "", ""), "/"),
    (("/", "users", ""), "/users"),
    (("/", "/users/", "/:id"), "/users/:id"),
    (("/", "api//v1", "items"), "/api/v1/items"),
    (("/", "users", "/"), "/users/"),
    (("/", "users", "./list"), "/users/list"),
    (("/", "users", "../admin"), "/admin"),
    (("/", "files", "«path:path»"), "/files/«path:path»"),
])
def test_join_path(parts, expected):
    assert join_path(*parts) == expected


def test_leading_double_slash_collapses():
    assert join_path("/", "/", "users") == "/users"


def test_nothing_to_join():
    assert join_path("", "") == "."
