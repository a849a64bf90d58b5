"""Configuration system for dom-distill.

Values are read from the process environment (and a local `.env` file) every
time they are accessed, so tests and callers can change the environment
without re-importing the package.
"""

import logging
from typing import Any

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)


class FlatEnvConfig(BaseSettings):
	"""All environment variables in a flat namespace."""

	model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', case_sensitive=True, extra='allow')

	# Logging
	DOM_DISTILL_LOGGING_LEVEL: str = Field(default='info')
	DOM_DISTILL_SETUP_LOGGING: bool = Field(default=False)

	# Serializer defaults
	DOM_DISTILL_CONTAINMENT_THRESHOLD: float = Field(default=0.99, gt=0, le=1)
	DOM_DISTILL_PAINT_ORDER_FILTERING: bool = Field(default=True)
	DOM_DISTILL_BBOX_FILTERING: bool = Field(default=True)

	# Iframe expansion limits
	DOM_DISTILL_MAX_IFRAME_DEPTH: int = Field(default=3, ge=0)
	DOM_DISTILL_MAX_IFRAMES: int = Field(default=15, ge=0)


class Config:
	"""Lazy proxy over FlatEnvConfig, re-reads the environment on every attribute access."""

	def __getattr__(self, name: str) -> Any:
		env_config = FlatEnvConfig()
		if name in FlatEnvConfig.model_fields:
			return getattr(env_config, name)
		raise AttributeError(f"'Config' object has no attribute '{name}'")


CONFIG = Config()
