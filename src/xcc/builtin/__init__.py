"""The plugin that ships with xcc and provides the global commands."""
