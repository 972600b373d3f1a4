"""
Configuration — loads settings from .ctxbundle.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "ignore_file": ".gitignore",
    "ignore": [],
    "default_ignores": True,
    "fuzzy_max_chars": 2000,
    "max_file_bytes": 1024 * 1024,
    "max_workers": 4,
    "preamble": "# Project Context\n\n",
    "log_level": "WARNING",
}

# Config file search locations
_CONFIG_FILENAMES = [".ctxbundle.yaml", ".ctxbundle.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .ctxbundle.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.IGNORE_FILE_NAME = _get("CTXBUNDLE_IGNORE_FILE", "ignore_file",
                                     _DEFAULTS["ignore_file"])
        self.USE_DEFAULT_IGNORES = _get_bool("CTXBUNDLE_DEFAULT_IGNORES",
                                             "default_ignores",
                                             _DEFAULTS["default_ignores"])

        # Extra rule lines merged into the outermost ignore scope
        self.EXTRA_IGNORE_RULES: list[str] = []
        ignore_section = yd.get("ignore", _DEFAULTS["ignore"])
        if isinstance(ignore_section, str):
            ignore_section = ignore_section.splitlines()
        if isinstance(ignore_section, list):
            self.EXTRA_IGNORE_RULES = [str(r) for r in ignore_section if r is not None]

        self.FUZZY_MAX_CHARS = _get("CTXBUNDLE_FUZZY_MAX_CHARS", "fuzzy_max_chars",
                                    _DEFAULTS["fuzzy_max_chars"], cast=int)
        self.MAX_FILE_BYTES = _get("CTXBUNDLE_MAX_FILE_BYTES", "max_file_bytes",
                                   _DEFAULTS["max_file_bytes"], cast=int)
        self.MAX_WORKERS = _get("CTXBUNDLE_MAX_WORKERS", "max_workers",
                                _DEFAULTS["max_workers"], cast=int)

        self.CONTEXT_PREAMBLE = str(yd.get("preamble", _DEFAULTS["preamble"]))

        self.LOG_LEVEL = _get("CTXBUNDLE_LOG_LEVEL", "log_level",
                              _DEFAULTS["log_level"]).upper()

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
