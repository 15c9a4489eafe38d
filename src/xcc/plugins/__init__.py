"""Plugin loading surface."""

from xcc.plugins.manager import PLUGIN_ENTRY_FILE, PLUGIN_METADATA_FILE, PluginManager
from xcc.plugins.models import PluginDescriptor, PluginPackageMetadata

__all__ = [
    "PLUGIN_ENTRY_FILE",
    "PLUGIN_METADATA_FILE",
    "PluginDescriptor",
    "PluginManager",
    "PluginPackageMetadata",
]
