"""Terrain plugin for the EFIS display.

Bridges the position source and the renderer to the terrain cache:
position fixes arrive as messages, the cache is re-paged as the aircraft
moves, and each frame the elevation, validity flag and height above
ground are published for the instruments.

Typical usage:
    plugin = TerrainPlugin()
    plugin.initialize(PluginContext(message_queue=queue, config=config))
    # every frame
    queue.process()
    plugin.update(dt)
"""

from dataclasses import fields
from typing import Any

from efis.core.config import ConfigError
from efis.core.logging_system import get_logger
from efis.core.messaging import Message, MessagePriority, MessageTopic
from efis.core.plugin import IPlugin, PluginContext, PluginMetadata, PluginType
from efis.core.resource_path import get_resource_path
from efis.terrain import DirectoryTileStore, TerrainCache, TerrainSettings

logger = get_logger(__name__)

# Settings the running cache can take without being rebuilt
_POLICY_FIELDS = {"horizon_nm", "threshold_nm", "check_interval_s", "retry_interval_s"}


class TerrainPlugin(IPlugin):
    """Terrain plugin providing elevation and AGL to other components.

    Components provided:
    - terrain_cache: TerrainCache serving elevation queries

    Messages consumed:
    - POSITION_UPDATED: ``{"latitude", "longitude", "altitude_m"}``

    Messages published:
    - TERRAIN_UPDATED every frame with ``elevation``, ``valid``,
      ``has_data``, ``agl_m`` and the ``reload`` reason, if any
    - TERRAIN_STATUS when availability or loading state changes
    """

    def __init__(self) -> None:
        """Initialize terrain plugin."""
        self.context: PluginContext | None = None
        self.settings: TerrainSettings | None = None
        self.cache: TerrainCache | None = None

        self._latitude: float | None = None
        self._longitude: float | None = None
        self._altitude_m: float | None = None
        self._last_status: tuple[bool, bool, str | None] | None = None
        # Frame time accumulated from update(dt); drives reload throttling
        self._elapsed_s = 0.0

    def get_metadata(self) -> PluginMetadata:
        """Return plugin metadata."""
        return PluginMetadata(
            name="terrain_plugin",
            version="1.0.0",
            author="EFIS Team",
            plugin_type=PluginType.WORLD,
            dependencies=[],
            provides=["terrain_cache"],
            optional=True,
            update_priority=15,
            description="Terrain elevation cache and AGL",
        )

    def initialize(self, context: PluginContext) -> None:
        """Build the tile store and cache from the ``terrain`` config.

        Args:
            context: Plugin context with access to core systems.

        Raises:
            ConfigError: If the terrain settings are invalid.
        """
        self.context = context
        self.settings = TerrainSettings.from_dict(context.config.get("terrain", {}))
        self.cache = self._build_cache(self.settings)

        if context.plugin_registry:
            context.plugin_registry.register("terrain_cache", self.cache)

        context.message_queue.subscribe(MessageTopic.POSITION_UPDATED, self.handle_message)
        logger.info("Terrain plugin initialized")

    def update(self, dt: float) -> None:
        """Re-page the cache if needed and publish terrain state.

        Args:
            dt: Delta time in seconds since last update.
        """
        if not self.context or not self.cache:
            return
        self._elapsed_s += dt
        if self._latitude is None or self._longitude is None:
            return

        lat, lon = self._latitude, self._longitude
        reason = self.cache.update(lat, lon)

        result = self.cache.elevation_at(lat, lon)
        agl_m = None
        if self._altitude_m is not None:
            agl_m = self.cache.agl_m(lat, lon, self._altitude_m)

        self.context.message_queue.publish(
            Message(
                sender="terrain_plugin",
                recipients=["*"],
                topic=MessageTopic.TERRAIN_UPDATED,
                data={
                    "latitude": lat,
                    "longitude": lon,
                    "elevation": result.value,
                    "valid": result.valid,
                    "has_data": result.has_data,
                    "agl_m": agl_m,
                    "reload": reason.value if reason is not None else None,
                },
                priority=MessagePriority.NORMAL,
            )
        )

        self._publish_status()

    def _publish_status(self) -> None:
        if not self.context or not self.cache:
            return

        tile = self.cache.tile
        status = (self.cache.valid, self.cache.is_loading, tile.name if tile else None)
        if status == self._last_status:
            return
        self._last_status = status

        available, loading, tile_name = status
        error = self.cache.last_error
        if not available and not loading and error is not None:
            logger.warning("Terrain unavailable: %s", error)

        self.context.message_queue.publish(
            Message(
                sender="terrain_plugin",
                recipients=["*"],
                topic=MessageTopic.TERRAIN_STATUS,
                data={
                    "available": available,
                    "loading": loading,
                    "tile": tile_name,
                    "error": str(error) if error is not None else None,
                },
                priority=MessagePriority.HIGH,
            )
        )

    def shutdown(self) -> None:
        """Stop the reload worker and unsubscribe."""
        if self.context:
            self.context.message_queue.unsubscribe(
                MessageTopic.POSITION_UPDATED, self.handle_message
            )
            if self.context.plugin_registry:
                self.context.plugin_registry.unregister("terrain_cache")

        if self.cache:
            self.cache.shutdown()

        logger.info("Terrain plugin shutdown")

    def handle_message(self, message: Message) -> None:
        """Record the latest position fix.

        Args:
            message: Message from the queue.
        """
        if message.topic != MessageTopic.POSITION_UPDATED:
            return

        data = message.data
        try:
            latitude = float(data["latitude"])
            longitude = float(data["longitude"])
            altitude = data.get("altitude_m")
            altitude_m = float(altitude) if altitude is not None else None
        except (KeyError, TypeError, ValueError):
            logger.debug("Ignoring malformed position message: %s", data)
            return

        self._latitude = latitude
        self._longitude = longitude
        self._altitude_m = altitude_m

    def on_config_changed(self, config: dict[str, Any]) -> None:
        """Apply new terrain settings.

        Reload-policy tuning is applied in place; anything else rebuilds
        the cache, which reloads on the next update.

        Args:
            config: New configuration dictionary.
        """
        if not self.settings or not self.cache:
            return

        try:
            new_settings = TerrainSettings.from_dict(config.get("terrain", {}))
        except ConfigError as e:
            logger.warning("Rejected terrain configuration: %s", e)
            return

        changed = {
            f.name
            for f in fields(TerrainSettings)
            if getattr(new_settings, f.name) != getattr(self.settings, f.name)
        }
        if not changed:
            return

        if changed <= _POLICY_FIELDS:
            policy = self.cache.policy
            policy.horizon_nm = new_settings.horizon_nm
            policy.threshold_nm = new_settings.reload_threshold_nm
            policy.check_interval_s = new_settings.check_interval_s
            policy.retry_interval_s = new_settings.retry_interval_s
            self.cache.settings = new_settings
            logger.info("Updated terrain reload policy: %s", sorted(changed))
        else:
            self.cache.shutdown()
            self.cache = self._build_cache(new_settings)
            self._last_status = None
            if self.context and self.context.plugin_registry:
                self.context.plugin_registry.unregister("terrain_cache")
                self.context.plugin_registry.register("terrain_cache", self.cache)
            logger.info("Rebuilt terrain cache after settings change: %s", sorted(changed))

        self.settings = new_settings

    def get_elevation_at(self, latitude: float, longitude: float) -> int | None:
        """Elevation at a position, or None if unknown or not yet valid."""
        if not self.cache:
            return None

        result = self.cache.elevation_at(latitude, longitude)
        if not result.valid or not result.has_data:
            return None
        return result.value

    def _frame_time(self) -> float:
        return self._elapsed_s

    def _build_cache(self, settings: TerrainSettings) -> TerrainCache:
        store = DirectoryTileStore(get_resource_path(settings.tile_dir), settings.extension)
        return TerrainCache(store, settings, clock=self._frame_time)
