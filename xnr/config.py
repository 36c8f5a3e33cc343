"""Runtime configuration for xnr - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from xnr.utils.constants import CONFIG_FILE, DEFAULT_BUILD_DIR, DEFAULT_RUN_DIR, ENV_PREFIX
from xnr.utils.logging import logger

DEFAULTS = {
    "paths": {
        "build_dir": DEFAULT_BUILD_DIR,
        "run_dir": DEFAULT_RUN_DIR,
    },
    "runtime": {
        "node": "node",
    },
    "jsx": {
        "pragma": "React.createElement",
        "fragment": "React.Fragment",
    },
}


def load_runtime_config(root: str | Path = ".") -> dict[str, Any]:
    """
    Load runtime configuration from .xnr.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (XNR_<SECTION>_<KEY>)
    2. <root>/.xnr.json file
    3. Built-in defaults

    Args:
        root: Directory to look for the config file in

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / CONFIG_FILE
    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                for section in cfg:
                    if section in user and isinstance(user[section], dict):
                        for key, value in user[section].items():
                            if key in cfg[section] and isinstance(value, type(cfg[section][key])):
                                cfg[section][key] = value
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not load config file from {path}: {e}")

    for section in cfg:
        for key in cfg[section]:
            env_var = f"{ENV_PREFIX}_{section.upper()}_{key.upper()}"
            value = os.environ.get(env_var)
            if value is None:
                continue
            if not value.strip():
                logger.warning(f"Ignoring empty value for environment variable {env_var}")
                continue
            cfg[section][key] = value

    return cfg
