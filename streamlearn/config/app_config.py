#!filepath: streamlearn/config/app_config.py
import os
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .scoring_config import ScoringConfig
from .training_config import TrainingConfig


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    training: Optional[TrainingConfig] = None
    scoring: Optional[ScoringConfig] = None

    @classmethod
    def load(cls, path: str, env_path: Optional[str] = None) -> "AppConfig":
        """
        Load YAML config + .env

        - .env is read from the config file's directory unless env_path is given
        - environment variables are available to model paths ($VAR expansion)
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        if env_path is None:
            env_path = os.path.join(os.path.dirname(os.path.abspath(path)), ".env")
        load_dotenv(env_path)

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        return cls(**raw)
