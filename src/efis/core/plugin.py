"""Plugin interface for display subsystems.

Subsystems such as the terrain cache are wrapped in plugins that receive
their configuration and the message queue through a PluginContext and are
updated once per frame.

Typical usage example:
    from efis.core.plugin import IPlugin, PluginMetadata, PluginType

    class MyPlugin(IPlugin):
        def get_metadata(self) -> PluginMetadata:
            return PluginMetadata(
                name="my_plugin",
                version="1.0.0",
                author="Author Name",
                plugin_type=PluginType.AVIONICS,
                provides=["my_service"],
            )
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PluginType(Enum):
    """Plugin categories."""

    CORE = "core"  # Message routing, configuration
    WORLD = "world"  # Terrain, airspace, traffic
    AVIONICS = "avionics"  # Navigation, autopilot
    DISPLAY = "display"  # Instrument rendering


@dataclass
class PluginMetadata:
    """Metadata describing a plugin.

    Attributes:
        name: Unique plugin identifier.
        version: Semantic version string.
        author: Plugin author.
        plugin_type: Category of plugin.
        dependencies: Plugins that must be initialized first.
        provides: Services this plugin registers.
        optional: Whether the display works without this plugin.
        update_priority: Lower values update earlier in the frame (0-1000).
        description: Optional human-readable description.
    """

    name: str
    version: str
    author: str
    plugin_type: PluginType
    dependencies: list[str] = field(default_factory=list)
    provides: list[str] = field(default_factory=list)
    optional: bool = False
    update_priority: int = 100
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate metadata after initialization."""
        if not self.name:
            raise ValueError("Plugin name cannot be empty")
        if not self.version:
            raise ValueError("Plugin version cannot be empty")
        if not self.author:
            raise ValueError("Plugin author cannot be empty")
        if self.update_priority < 0 or self.update_priority > 1000:
            raise ValueError("Update priority must be between 0 and 1000")


@dataclass
class PluginContext:
    """Core systems handed to a plugin at initialization.

    Attributes:
        message_queue: Message queue for inter-component communication.
        config: Application configuration dictionary.
        plugin_registry: Optional registry where plugins publish services.
    """

    message_queue: Any  # MessageQueue (avoid circular import)
    config: dict[str, Any]
    plugin_registry: Any = None


class IPlugin(ABC):
    """Base interface for all plugins."""

    @abstractmethod
    def get_metadata(self) -> PluginMetadata:
        """Return plugin metadata without performing initialization."""

    @abstractmethod
    def initialize(self, context: PluginContext) -> None:
        """Set up the plugin and subscribe to messages.

        Args:
            context: Context providing access to core systems.
        """

    @abstractmethod
    def update(self, dt: float) -> None:
        """Advance plugin state by one frame.

        Args:
            dt: Delta time in seconds since last update.

        Note:
            Called on the render tick. Long operations must not block here.
        """

    @abstractmethod
    def shutdown(self) -> None:
        """Release resources and unsubscribe."""

    @abstractmethod
    def handle_message(self, message: Any) -> None:
        """Handle a message delivered by the message queue."""

    def on_config_changed(self, config: dict[str, Any]) -> None:
        """Handle a runtime configuration change. Ignored by default."""

    def on_error(self, error: Exception) -> None:
        """Handle an exception raised during plugin execution."""
        logging.getLogger(__name__).error(
            "Error in plugin %s: %s", self.get_metadata().name, error
        )
