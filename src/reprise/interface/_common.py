"""Helpers shared by CLI command modules."""

import logging
from typing import Any

from reprise.application.config import AppConfig, resolve_config


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config with CLI overrides, dropping options the user did not pass."""
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


def _apply_verbosity(verbose: int) -> None:
    level = logging.DEBUG if verbose >= 1 else logging.INFO
    logging.getLogger("reprise").setLevel(level)
