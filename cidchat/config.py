"""
Config loader for cidchat.
Reads config.yaml once at startup. All other modules import from here.

${ENV_VAR} references in any string value are resolved from the
environment (after .env is loaded), so credentials for the LLM node and
the storage service never need to live in the YAML file itself.
Set CIDCHAT_CONFIG to point at a different file.
"""

import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

_config: dict | None = None


def _resolve_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} patterns with actual environment variable values."""
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _default_path() -> Path:
    override = os.environ.get("CIDCHAT_CONFIG")
    return Path(override) if override else _CONFIG_PATH


def load_config(path: Path | None = None) -> dict:
    """Load and cache config from YAML file."""
    global _config
    if _config is not None:
        return _config

    config_path = Path(path) if path else _default_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config = _walk_and_resolve(raw)
    return _config


def get_config() -> dict:
    """Return cached base config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def require(cfg: dict, dotted_key: str) -> str:
    """
    Return a non-empty string value at a dotted path such as "backend.url".
    Raises ValueError naming the key when it is missing or blank, which is
    what an unset ${ENV_VAR} resolves to.
    """
    node = cfg
    for part in dotted_key.split("."):
        node = node.get(part) if isinstance(node, dict) else None
    if not node or not isinstance(node, str):
        raise ValueError(f"Missing required config value: {dotted_key}")
    return node
