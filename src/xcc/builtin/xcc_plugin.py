"""
Adds the global CLI commands.

This file is the entry point the plugin manager loads; every xcc plugin ships
one next to its ``plugin.yaml``.
"""

from xcc.plugins.models import PluginDescriptor


def init_dependencies(plugin, assets):
    # Registered lazily; nothing is imported until a command asks for it.
    assets.register_dependencies({"watchfiles": "watchfiles"})


async def init_commands(plugin, command_loader):
    await command_loader.add_commands(
        plugin,
        [
            "xcc.builtin.list_commands:ListCommands",
            "xcc.builtin.node_watch:NodeWatch",
        ],
    )


plugin = PluginDescriptor(
    name="Globals",
    description="This plugin ships with xcc and provides the global CLI commands.",
    init_dependencies=init_dependencies,
    init_commands=init_commands,
)
