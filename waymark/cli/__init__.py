"""
Waymark CLI.

The `waymark` command inspects annotation registries without starting
a dispatcher.

Usage:
    waymark annotations <module:attr>
    waymark results <module:attr>
    waymark check <module:attr> -t <template-dir>
"""

__version__ = "0.1.0"
__cli_name__ = "waymark"
