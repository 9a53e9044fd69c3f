# Author: Bradley R. Kinnard
# utils module exports

from utils.helpers import (
    ConfigError,
    load_run_config,
    validate_run_config,
    compute_hash,
    canonical_digest,
    derive_seed,
    get_logger,
    set_log_level,
)

__all__ = [
    "ConfigError",
    "load_run_config",
    "validate_run_config",
    "compute_hash",
    "canonical_digest",
    "derive_seed",
    "get_logger",
    "set_log_level",
]
