"""Plugin models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from xcc.assets import AssetManager
    from xcc.commands.loader import CommandLoader
    from xcc.services import ServiceContainer

HookResult = Union[None, Awaitable[Any]]

# Every hook receives the (metadata-stamped) descriptor first.
DependenciesHook = Callable[["PluginDescriptor", "AssetManager"], HookResult]
NamespacesHook = Callable[["PluginDescriptor", "AssetManager"], HookResult]
ServicesHook = Callable[["PluginDescriptor", "ServiceContainer", Callable[..., Any]], HookResult]
CommandsHook = Callable[["PluginDescriptor", "CommandLoader"], HookResult]


@dataclass(frozen=True)
class PluginDescriptor:
    """A loadable unit contributing dependencies, services and commands.

    The four hooks are optional; the manager only calls those that are set,
    always in the order dependencies, namespaces, services, commands.
    """

    name: str
    description: str = ""
    init_dependencies: Optional[DependenciesHook] = None
    init_namespaces: Optional[NamespacesHook] = None
    init_services: Optional[ServicesHook] = None
    init_commands: Optional[CommandsHook] = None
    package_name: Optional[str] = None
    version: Optional[str] = None
    path: Optional[str] = None


class PluginPackageMetadata(BaseModel):
    """Contents of a plugin's ``plugin.yaml``."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: Optional[str] = None

    @field_validator("version", mode="before")
    def coerce_version(cls, v):
        # YAML reads `version: 1.0` as a float
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v
