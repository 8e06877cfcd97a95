from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from app.assessments.iota_v1.types import IotaParameters

CONFIG_PATH = Path(__file__).with_name("config.yaml")


@lru_cache()
def load_config() -> IotaParameters:
    with CONFIG_PATH.open("r", encoding="utf-8") as fh:
        raw: Dict[str, Any] = yaml.safe_load(fh)
    return IotaParameters.from_raw(raw)
