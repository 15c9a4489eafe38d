"""Command base classes and the command registry."""

from xcc.commands.base import BaseCommand, BaseModuleCommand
from xcc.commands.loader import CommandEntry, CommandLoader, PluginCommand

__all__ = [
    "BaseCommand",
    "BaseModuleCommand",
    "CommandEntry",
    "CommandLoader",
    "PluginCommand",
]
