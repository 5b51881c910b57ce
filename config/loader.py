import os
import re
import yaml
from typing import Any, Dict, IO

from utils.errors import ConfigError

# ${VAR} or ${VAR:-default}, anywhere inside a scalar
ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")
ENV_VAR_RESOLVER = re.compile(r"^.*\$\{\w+(?::-[^}]*)?\}.*$")


def _substitute(match: "re.Match[str]") -> str:
    env_var, default = match.group(1), match.group(2)
    replacement = os.getenv(env_var)
    if replacement is not None:
        return replacement
    if default is not None:
        return default
    raise ConfigError(f"Environment variable '{env_var}' not found for substitution in config.")


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Substitutes environment variables in a scalar.
    e.g. ``https://${JIRA_HOST}`` or ``${JIRA_TOKEN:-}``.
    """
    value = loader.construct_scalar(node)
    return ENV_VAR_MATCHER.sub(_substitute, value)


class EnvVarLoader(yaml.SafeLoader):
    """SafeLoader that resolves ``${VAR}`` references without touching the global SafeLoader."""


EnvVarLoader.add_constructor("!env", _env_var_constructor)
EnvVarLoader.add_implicit_resolver("!env", ENV_VAR_RESOLVER, None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    try:
        config = yaml.load(config_file, Loader=EnvVarLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration root must be a mapping.")
    return config
