"""Settings for building a `Paper` registry from a YAML file.

Example ``paperdb.yml``::

    root_dir: /var/lib/myapp
    serializer: encrypted
    password: s3cret
    log_level: INFO
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PaperSettings(BaseModel):
    root_dir: Optional[str] = None
    serializer: Literal["pickle", "json", "encrypted"] = "pickle"
    password: Optional[str] = None
    key: Optional[str] = None
    log_level: str = "WARNING"
    key_locking: bool = True
    fsync: bool = True


def load_settings(config_path: Union[str, Path]) -> PaperSettings:
    """Load settings from YAML; a missing file yields the defaults."""
    cfg_path = Path(config_path)
    if not cfg_path.exists():
        logger.info("No settings file at %s; using defaults", cfg_path)
        return PaperSettings()
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return PaperSettings.model_validate(data)
