"""Resource path resolution for source checkouts and bundled builds.

Typical usage:
    from efis.core.resource_path import get_config_path, get_resource_path

    config_path = get_config_path("terrain.yaml")
    tile_dir = get_resource_path("data/terrain")
"""

import sys
from pathlib import Path


def is_bundled() -> bool:
    """Check whether running from a PyInstaller bundle."""
    return hasattr(sys, "_MEIPASS")


def get_project_root() -> Path:
    """Get the directory resources are resolved against.

    Returns:
        The bundle extraction directory when bundled, otherwise the
        project root (three levels above ``src/efis/core``).
    """
    if is_bundled():
        return Path(getattr(sys, "_MEIPASS"))
    return Path(__file__).parent.parent.parent.parent


def get_resource_path(relative_path: str | Path) -> Path:
    """Resolve a path relative to the project root.

    Absolute paths are returned unchanged.
    """
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return get_project_root() / path


def get_config_path(config_file: str) -> Path:
    """Path of a file under ``config/``."""
    return get_resource_path(f"config/{config_file}")

