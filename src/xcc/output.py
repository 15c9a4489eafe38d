"""Console output handler for operator-facing CLI output.

Generic diagnostics go through ``logging``; everything the operator is meant to
read (banners, command listings, child process output) goes through an
:class:`OutputHandler`. The colour helpers return rich markup strings so they
can be composed before printing.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

SYMBOLS = {
    "pointer": "❯",
    "star": "★",
    "tick": "✔",
    "cross": "✖",
    "info": "ℹ",
    "warning": "⚠",
    "bullet": "●",
}

# Names used by callers that rich does not know as-is
_COLOR_ALIASES = {
    "grey": "bright_black",
    "gray": "bright_black",
}


def _style(color: str) -> str:
    return _COLOR_ALIASES.get(color, color)


class OutputHandler:
    """Writes styled, operator-visible output to the console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)

    # ------------------------------------------------------------------ #
    #   Composition helpers (return markup)
    # ------------------------------------------------------------------ #
    def color(self, text: object, color: str, do_print: bool = False) -> str:
        markup = f"[{_style(color)}]{escape(str(text))}[/]"
        if do_print:
            self.log(markup)
        return markup

    def bold(self, text: object) -> str:
        return self.color(text, "bold")

    def symbol(self, name: str, color: Optional[str] = None) -> str:
        glyph = SYMBOLS.get(name, name)
        if color is None:
            return glyph
        return f"[{_style(color)}]{glyph}[/]"

    def indent(self, markup: str, levels: int = 1, do_print: bool = False) -> str:
        pad = "  " * levels
        indented = "\n".join(pad + line for line in markup.split("\n"))
        if do_print:
            self.log(indented)
        return indented

    # ------------------------------------------------------------------ #
    #   Writers
    # ------------------------------------------------------------------ #
    def log(self, markup: str = "") -> None:
        self.console.print(markup)

    def blank(self) -> None:
        self.console.print()

    def div(self) -> None:
        self.console.rule(style="bright_black")

    def star(self, markup: str) -> None:
        self.log(f" {self.symbol('star', 'yellow')} {markup}")

    def chevron(
        self,
        text: str,
        level: int = 1,
        chevron_color: str = "cyan",
        text_color: str = "white",
    ) -> None:
        marker = self.symbol("pointer", chevron_color) * max(level, 1)
        self.log(f" {marker} {self.color(text, text_color)}")

    def greet(self, markup: str) -> None:
        self.console.print(Panel.fit(markup, border_style="bright_black", padding=(0, 2)))

    def child_line(self, stream_name: str, line: str) -> None:
        """Print one line of child process output, tagged with its stream."""
        tag_color = "green" if stream_name == "stdout" else "red"
        self.log(
            self.color("child.", "grey")
            + self.color(stream_name, tag_color)
            + self.color("  |  ", "grey")
            + escape(line)
        )
