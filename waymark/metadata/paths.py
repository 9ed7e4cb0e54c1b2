"""
Structural URL path joining.

Segments are joined with "/" and normalized; their content (":id",
"«id:int»", "*") is never inspected.
"""

import posixpath
import re


_REPEATED_SLASHES = re.compile(r"/{2,}")


def join_path(*parts: str) -> str:
    """
    Join path segments and normalize separators.

    Empty segments are skipped, repeated separators collapse, "." and
    ".." are resolved, and a trailing separator present in the input is
    kept.

    Examples:
        join_path("/", "users", "/:id")   -> "/users/:id"
        join_path("/", "", "/")           -> "/"
        join_path("/", "api/", "items/")  -> "/api/items/"
    """
    joined = "/".join(part for part in parts if part)
    if not joined:
        return "."

    trailing = joined.endswith("/")
    # normpath keeps exactly two leading slashes, collapse them first
    normalized = posixpath.normpath(_REPEATED_SLASHES.sub("/", joined))
    if trailing and not normalized.endswith("/"):
        normalized += "/"
    return normalized
