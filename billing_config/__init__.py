"""
billing_config -- single public entrypoint for billing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. No other component reads configuration files.
    Returns a frozen ``BillingConfig``.

Architecture position:
    Configuration sits above ``billing_kernel`` and below
    ``billing_services``. Engines never import it; services pass the
    relevant values into engine constructors.

Failure modes:
    - ``FileNotFoundError`` -- override file does not exist.
    - ``ValueError`` / ``KeyError`` -- invalid configuration values.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``BILLING_CONFIG_TRACE`` log entry with the configuration checksum, so
    each computed invoice can be tied to the configuration that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from billing_config.loader import load_yaml_file, merge_config, parse_config
from billing_config.schema import BillingConfig, LedgerPostingDef

__all__ = ["BillingConfig", "LedgerPostingDef", "get_active_config"]

_logger = logging.getLogger("billing_kernel.config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> BillingConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Optional YAML file merged over the shipped defaults.

    Returns:
        Frozen ``BillingConfig``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If configuration validation fails.
    """
    data = load_yaml_file(DEFAULTS_PATH)
    source = str(DEFAULTS_PATH)
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        data = merge_config(data, load_yaml_file(path))
        source = str(path)

    config = parse_config(data)

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "source": source,
            "checksum": config.checksum,
            "currency": config.currency,
            "fallback_hsn_code": config.fallback_hsn_code,
            "stock_bearing_types": sorted(t.value for t in config.stock_bearing_types),
            "ledger_posting_count": len(config.ledger_postings),
        },
    )
    return config
