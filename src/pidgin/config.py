"""Interpreter configuration loaded from ``pidgin.yaml``.

Example file::

    search_paths: [".", "lib"]
    extension: ".pg"
    max_call_depth: 200
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging
import os

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pidgin.yaml"
PATH_ENV_VAR = "PIDGIN_PATH"


@dataclass
class PidginConfig:
    """Settings shared by the interpreter and the module loader."""

    search_paths: List[str] = field(default_factory=lambda: [".", "examples"])
    extension: str = ".pg"
    max_call_depth: int = 1000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PidginConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown configuration keys: {', '.join(unknown)}")

        config = cls(**data)
        if isinstance(config.search_paths, str):
            config.search_paths = [config.search_paths]
        config.search_paths = [str(p) for p in config.search_paths]
        if not config.extension.startswith("."):
            config.extension = "." + config.extension
        if not isinstance(config.max_call_depth, int) or config.max_call_depth < 1:
            raise ValueError(f"max_call_depth must be a positive integer, "
                             f"got {config.max_call_depth!r}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_paths": list(self.search_paths),
            "extension": self.extension,
            "max_call_depth": self.max_call_depth,
        }


def load_config(path: Optional[Union[str, Path]] = None) -> PidginConfig:
    """Load configuration.

    Reads ``path`` when given, else ``pidgin.yaml`` in the working directory
    when it exists, else the defaults. Directories listed in ``PIDGIN_PATH``
    are searched before the configured ones.

    Raises:
        FileNotFoundError: an explicit ``path`` does not exist
        ValueError: the file is not a mapping or has unknown keys
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"config not found: {config_path}")
    else:
        config_path = Path(CONFIG_FILENAME)

    data: Dict[str, Any] = {}
    if config_path.is_file():
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"expected mapping at root of {config_path}, "
                             f"got {type(data).__name__}")
        logger.info("loaded configuration from %s", config_path)

    config = PidginConfig.from_dict(data)

    extra = os.environ.get(PATH_ENV_VAR, "")
    prepend = [p for p in extra.split(os.pathsep) if p]
    if prepend:
        config.search_paths = prepend + config.search_paths
    return config
