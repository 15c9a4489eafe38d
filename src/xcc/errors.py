"""Error types for the xcc CLI with friendly, actionable messages."""

from __future__ import annotations

from typing import Optional

import click


class XccError(click.ClickException):
    """Base class for all CLI-visible errors with enhanced formatting."""

    #: Emoji shown at the beginning of every error line
    emoji: str = "❌"

    #: Short, actionable suggestion shown after the main message.
    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    @property
    def formatted_message(self) -> str:
        """
        Returns the final string that Click writes to stderr.
        Includes:
        * emoji + main message (bold)
        * optional hint on a new line (yellow)
        """
        lines = [f"{self.emoji}  {click.style(self.message, fg='red', bold=True)}"]
        if self.hint:
            lines.append(click.style(f"💡 {self.hint}", fg="yellow"))
        return "\n".join(lines)

    # Click calls show to emit the message.
    def show(self, file=None) -> None:
        click.echo(self.formatted_message, err=True, file=file)


class PluginLoadError(XccError):
    """Raised when a plugin entry file or its metadata cannot be loaded."""
    emoji = "🧩"

    def __init__(self, path: str, details: str):
        self.path = path
        hint = (
            f"A plugin directory needs {click.style('xcc_plugin.py', fg='cyan')} "
            f"and {click.style('plugin.yaml', fg='cyan')}."
        )
        super().__init__(f"Failed to load xcc plugin at {path} – {details}", hint)


class LifecycleHookError(XccError):
    """Raised when one of a plugin's init hooks fails."""
    emoji = "🪝"

    def __init__(self, plugin: str, hook: str, details: str):
        self.plugin = plugin
        self.hook = hook
        super().__init__(f"Plugin {click.style(plugin, fg='magenta')} failed in {hook}() – {details}")


class CommandExecutionError(XccError):
    """Raised when a command handler's execute() fails."""
    emoji = "💥"

    def __init__(self, command: str, details: str):
        self.command = command
        hint = f"Run {click.style(f'xcc {command} --help', fg='cyan')} to check the usage."
        super().__init__(f"Command {click.style(command, fg='magenta')} failed – {details}", hint)


class CommandResolutionError(XccError):
    """Raised when a command class reference cannot be resolved."""
    emoji = "🔍"

    def __init__(self, ref: str, details: str):
        self.ref = ref
        super().__init__(f"Cannot resolve command class {click.style(ref, fg='magenta')} – {details}")


class ServiceResolutionError(XccError):
    """Raised when a command asks for a collaborator nobody registered."""
    emoji = "🔌"

    def __init__(self, name: str):
        self.name = name
        hint = "Register it from a plugin's init_services() hook."
        super().__init__(f"No service named {click.style(name, fg='magenta')} is registered.", hint)


class UnsupportedPackageManagerError(XccError):
    """Raised when the installer of xcc cannot be introspected for global modules."""
    emoji = "📦"

    def __init__(self, pm_name: str):
        self.pm_name = pm_name
        hint = (
            "xcc must be able to introspect the global modules of its package manager "
            f"in order to discover plugins. Set {click.style('XCC_DISCOVER_PLUGINS=false', fg='cyan')} "
            "to skip discovery."
        )
        super().__init__(
            f"An unrecognized or unsupported package manager ('{pm_name}') was used to install xcc.",
            hint,
        )


class ConfigError(XccError):
    """Raised when the XCC_* environment settings are invalid."""
    emoji = "🔧"

    def __init__(self, details: str):
        hint = f"Check the {click.style('XCC_*', fg='cyan')} environment variables and your .env file."
        super().__init__(f"Configuration problem – {details}", hint)
