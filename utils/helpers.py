# Author: Bradley R. Kinnard
# utility helpers for the trace verifier

import json
import hashlib
import logging
from pathlib import Path
from typing import Any

import yaml
import jsonschema

from config.schemas import run_config_schema


logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """raised when a run configuration fails schema validation."""


def load_run_config(path: Path | str = "config/verify_config.yaml") -> dict[str, Any]:
    """load and validate run config against schema."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"config not found: {path}")

    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}

    validate_run_config(config)
    logger.info(f"loaded run config from {path}")
    return config


def validate_run_config(config: dict[str, Any]) -> None:
    """validate a config mapping, re-raising schema errors as ConfigError."""
    try:
        jsonschema.validate(instance=config, schema=run_config_schema)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"invalid run config at {where}: {e.message}") from e


def compute_hash(data: str | bytes) -> str:
    """compute sha256 hash of data."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def canonical_digest(obj: Any, length: int = 16) -> str:
    """sha256 of the canonical json form of obj, truncated."""
    canonical = json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
    return compute_hash(canonical)[:length]


def derive_seed(run_seed: int, trial_index: int) -> int:
    """
    derive an independent per-trial seed from the run seed.

    hash-based so trial i gets the same seed no matter which worker runs it
    or how many trials precede it.
    """
    digest = compute_hash(f"{run_seed}:{trial_index}")
    return int(digest[:8], 16)


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """get a configured logger. avoids duplicate handlers."""
    log = logging.getLogger(name)
    log.setLevel(level)

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return log


def set_log_level(level: int | str) -> None:
    """adjust level on every logger created through get_logger."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    for name in list(logging.root.manager.loggerDict):
        log = logging.getLogger(name)
        if log.handlers:
            log.setLevel(level)
            for handler in log.handlers:
                handler.setLevel(level)
