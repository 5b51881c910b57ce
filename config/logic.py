import collections.abc
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.loader import load_config
from config.models import Config
from utils.errors import ConfigError
from utils.logger import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
USER_CONFIG_DIR = Path.home() / ".aipr"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_FILENAME = ".aipr.yaml"


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges two dictionaries.
    Arrays are replaced, not merged. ``None`` in ``source`` never erases a value.
    """
    for key, value in source.items():
        if value is None and key in target:
            continue
        if isinstance(value, collections.abc.Mapping) and isinstance(target.get(key), collections.abc.Mapping):
            target[key] = deep_merge(dict(target[key]), value)
        else:
            target[key] = value
    return target


def find_project_root(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the repository root by searching upwards for a .git directory.
    """
    d = start_dir.resolve()
    while d != d.parent:
        if (d / ".git").exists():
            return d
        d = d.parent
    return None


def find_project_config(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the project-specific configuration file (.aipr.yaml) in the repository root.
    """
    project_root = find_project_root(start_dir)
    if project_root:
        project_config_path = project_root / PROJECT_CONFIG_FILENAME
        if project_config_path.is_file():
            return project_config_path
    return None


def _read(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return load_config(f)


def load_and_merge_configs(custom_config_path: Optional[str] = None) -> Config:
    """
    Loads the default, user and project configurations and merges them in that order.

    A custom config path replaces the user and project files but is still
    layered over the packaged defaults.

    Raises:
        ConfigError: If the defaults or a custom file are missing or invalid,
            or the merged result fails validation.
    """
    if not DEFAULT_CONFIG_PATH.is_file():
        raise ConfigError("Default configuration file not found.")

    merged_config: Dict[str, Any] = _read(DEFAULT_CONFIG_PATH)

    config_paths: List[Path] = []
    if custom_config_path:
        path = Path(custom_config_path)
        if not path.is_file():
            raise ConfigError(f"Custom config file not found at: {custom_config_path}")
        logger.info(f"Using custom configuration from: {custom_config_path}")
        merged_config = deep_merge(merged_config, _read(path))
    else:
        if USER_CONFIG_PATH.is_file():
            config_paths.append(USER_CONFIG_PATH)
        project_config_path = find_project_config()
        if project_config_path:
            config_paths.append(project_config_path)

    for path in config_paths:
        logger.info(f"Loading configuration from: {path}")
        try:
            merged_config = deep_merge(merged_config, _read(path))
        except (OSError, ConfigError) as e:
            logger.warning(f"Could not load or parse config at {path}: {e}")

    try:
        final_config = Config(**merged_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e

    # Credentials stay out of the debug log.
    logger.debug(f"Final merged config: {final_config.model_dump_json(indent=2, exclude={'providers', 'jira', 'github'})}")
    return final_config
