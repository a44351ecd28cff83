import os
from typing import Any, Dict

from winswitch.utils.config import get_config
from winswitch.utils.exceptions import ConfigError
from winswitch.utils.logging import get_logger
from winswitch.windows.base_backend import BaseWindowBackend
from winswitch.windows.hyprland import HyprlandBackend
from winswitch.windows.wmctrl import WmctrlBackend

logger = get_logger(__name__)

def create_window_backend(config: Dict[str, Any]) -> BaseWindowBackend:
    """Detect and return the appropriate window backend instance."""
    backend = config.get("backend", "auto")
    if backend == "auto":
        backend = "hyprland" if "HYPRLAND_INSTANCE_SIGNATURE" in os.environ else "wmctrl"

    if backend == "hyprland":
        logger.debug("Using Hyprland window backend")
        return HyprlandBackend(command=get_config(config, "hyprland.command", "hyprctl"))
    if backend == "wmctrl":
        logger.debug("Using wmctrl window backend")
        return WmctrlBackend(
            command=get_config(config, "wmctrl.command", "wmctrl"),
            skip_malformed_lines=bool(get_config(config, "wmctrl.skip_malformed_lines", False))
        )

    raise ConfigError(f"Unknown window backend: {backend!r}")
