"""Package-manager introspection."""

from xcc.pm.inspector import Inspector

__all__ = ["Inspector"]
