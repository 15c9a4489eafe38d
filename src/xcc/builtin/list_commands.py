"""Provides the 'list-commands' command."""

from __future__ import annotations

from typing import Any

from xcc.commands.base import BaseCommand


class ListCommands(BaseCommand):
    command = "list-commands"
    description = "Lists details of all available xcc commands."
    examples = (
        "list-commands",
        "list-commands -d",
        "list-commands -d --find something",
        "list-commands -f something",
    )
    requires = ("command_loader",)

    def __init__(self, command_loader, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.command_loader = command_loader

    @classmethod
    def configure(cls, cmd, out) -> None:
        cmd.option("-d", "--details", is_flag=True, help="Shows additional command information.") \
            .option(
                "-f",
                "--find",
                metavar="STRING",
                default=None,
                help="If provided, only commands that match STRING will be displayed.",
            )

    async def execute(self) -> None:
        out = self.out
        show_details = self.options.get("details") is True
        find = self.options.get("find") or None

        for entry in self.command_loader.list(find=find):
            command_name = out.bold(entry.command)
            if show_details:
                command_name += " " + out.color(f"({entry.class_ref})", "grey")
            out.star(command_name)

            out.indent(out.color(entry.description, "white"), 2, do_print=True)

            if show_details:
                plugin = entry.plugin
                plugin_info = out.color("From Plugin: ", "green") + out.color(plugin.name, "cyan")
                plugin_info += " " + out.color(f"({plugin.package_name}:{plugin.version})", "grey")
                out.indent(plugin_info, 2, do_print=True)

            out.blank()
