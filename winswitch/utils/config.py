import os
import copy
import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

from winswitch.utils.exceptions import ConfigError
from winswitch.utils.logging import configure_logging, get_logger

CONFIG_ENV_VAR = "WINSWITCH_CONFIG"

def get_default_config() -> Dict[str, Any]:
    """Returns default configuration settings."""
    return {
        "development": False,  # Enable debug logging
        "log_file": "~/.cache/winswitch/winswitch.log",
        "backend": "auto",  # auto, wmctrl or hyprland
        "wmctrl": {
            "command": "wmctrl",
            "skip_malformed_lines": False
        },
        "hyprland": {
            "command": "hyprctl"
        },
        "store": {
            "type": "json",  # json or postgresql
            "path": "~/.local/share/winswitch/usage.json",
            "prefix": "window_usage_"
        },
        "database": {
            "host": "localhost",
            "database": "winswitch",
            "user": os.getenv("USER", "postgres"),
            "password": ""  # Empty for peer authentication
        },
        "session": {
            "refresh_delay": 0.5,
            "enter_refresh_delay": 0.1
        },
        "ui": {
            "stay_open": False,
            "prompt": "Switch to:"
        }
    }

def get_config_path() -> Path:
    """Location of the user's config file."""
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR]).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(config_home) / "winswitch" / "config.json"

def load_env_vars() -> None:
    """Load environment variables from a .env file if one exists."""
    env_path = Path.cwd() / '.env'
    if env_path.exists():
        load_dotenv(env_path)

def _env_var_name(value: str) -> Optional[str]:
    """Name of the variable a whole-value reference like $VAR or ${VAR} points at."""
    if value.startswith('${') and value.endswith('}'):
        return value[2:-1]
    if value.startswith('$') and len(value) > 1:
        return value[1:]
    return None

def _substitute(value: Any, missing_vars: List[str]) -> Any:
    if isinstance(value, dict):
        return {key: _substitute(item, missing_vars) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute(item, missing_vars) for item in value]
    if not isinstance(value, str):
        return value
    env_var = _env_var_name(value)
    if env_var is None:
        return value
    if env_var not in os.environ:
        missing_vars.append(env_var)
        return value
    return os.environ[env_var]

def replace_env_vars(config: Dict) -> Dict:
    """Replace $VAR and ${VAR} values anywhere in the config tree.

    Raises:
        ConfigError: Listing every referenced variable that isn't set
    """
    missing_vars: List[str] = []
    result = _substitute(config, missing_vars)
    if missing_vars:
        listed = "\n".join(f"- {var}" for var in missing_vars)
        raise ConfigError(
            f"Missing required environment variables:\n{listed}\n"
            "Set them in your environment or .env file."
        )
    return result

def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge user settings over the defaults."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged

def get_config(config: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read a dotted key such as ``session.refresh_delay``."""
    value: Any = config
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return default
        value = value[part]
    return value

def is_dev_mode(config: Dict[str, Any]) -> bool:
    return bool(config.get("development", False))

def ensure_config_exists(config_path: Optional[Path] = None) -> Path:
    """Create default config if it doesn't exist. Returns config path."""
    config_path = config_path or get_config_path()
    if not config_path.exists():
        logger = get_logger(__name__)
        logger.warning(f"Config file not found at {config_path}")

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            json.dump(get_default_config(), f, indent=2)

        logger.info(f"Created default config at {config_path}")

    return config_path

def load_config(config_path) -> Dict[str, Any]:
    """Loads a JSON config file, merges it over the defaults and expands env vars.

    Raises:
        ConfigError: If the file is missing, unreadable or references unset variables
    """
    config_path = Path(config_path)
    try:
        with open(config_path, 'r') as f:
            user_config = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found at {config_path}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error decoding json at file: {config_path}: {e}")

    if not isinstance(user_config, dict):
        raise ConfigError(f"Configuration at {config_path} must be a JSON object")

    return replace_env_vars(merge_config(get_default_config(), user_config))

def load_config_and_logging(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Loads configuration, replaces environment variables and configures logging."""
    config_path = ensure_config_exists(config_path)
    load_env_vars()

    config = load_config(config_path)

    log_file = config.get("log_file")
    configure_logging(
        development=is_dev_mode(config),
        log_file=Path(log_file) if log_file else None
    )
    return config
