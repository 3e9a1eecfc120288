"""
Run settings.

Defaults ship with the package as ``config.json``. A user file passed with
``-c`` is read the same way and its keys replace the defaults one by one, so
it only needs the settings it changes.
"""

import json
import os
from typing import Any, Dict, Optional

DEFAULT_CONFIG_FILE = os.path.join(os.path.dirname(__file__), "config.json")


def _read_json(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            settings = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON in '{config_file}': {e}") from e

    if not isinstance(settings, dict):
        raise ValueError(f"'{config_file}' must hold a JSON object, not {type(settings).__name__}.")
    return settings


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the packaged defaults, updated with ``config_file`` when given.

    Parameters
    ----------
    config_file : str, optional
        JSON file with settings to override.

    Returns
    -------
    dict
        Merged settings.

    Raises
    ------
    FileNotFoundError
        If ``config_file`` does not exist.
    ValueError
        If a file is not valid JSON or does not hold an object.
    """
    settings = _read_json(DEFAULT_CONFIG_FILE)
    if config_file:
        settings.update(_read_json(config_file))
    return settings
