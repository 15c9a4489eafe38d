"""
xcc - a pluggable command-line dispatcher with watch-and-restart supervision.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
