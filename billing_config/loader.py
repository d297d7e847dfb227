"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads YAML configuration files and parses them into the typed
``billing_config.schema.BillingConfig``. The single public entry point for
runtime config is ``billing_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; unknown invoice types, accounts or directions are rejected.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the merged
  configuration for identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import BillingConfig, LedgerPostingDef
from billing_kernel.domain.records import AccountCategory, EntryDirection, InvoiceType

_KNOWN_KEYS = frozenset({
    "currency",
    "fallback_hsn_code",
    "stock_bearing_types",
    "ledger_postings",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` over ``base``; ledger_postings merge per invoice type."""
    merged = dict(base)
    for key, value in override.items():
        if key == "ledger_postings" and isinstance(value, dict):
            postings = dict(merged.get("ledger_postings") or {})
            for invoice_type, posting in value.items():
                if posting is None:
                    postings.pop(invoice_type, None)
                else:
                    postings[invoice_type] = posting
            merged[key] = postings
        else:
            merged[key] = value
    return merged


def parse_invoice_types(values: Any, key: str) -> frozenset[InvoiceType]:
    """Parse a list of invoice type names."""
    if values is None:
        return frozenset()
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"{key} must be a list of invoice types")
    try:
        return frozenset(InvoiceType(v) for v in values)
    except ValueError as e:
        raise ValueError(f"{key}: {e}") from e


def parse_ledger_postings(data: Any) -> tuple[LedgerPostingDef, ...]:
    """Parse the ``ledger_postings`` mapping (invoice type -> account/direction)."""
    if not data:
        return ()
    if not isinstance(data, dict):
        raise ValueError("ledger_postings must be a mapping of invoice type to posting")
    postings: list[LedgerPostingDef] = []
    for invoice_type, posting in data.items():
        try:
            postings.append(
                LedgerPostingDef(
                    invoice_type=InvoiceType(invoice_type),
                    account_category=AccountCategory(posting["account"]),
                    direction=EntryDirection(posting["direction"]),
                )
            )
        except ValueError as e:
            raise ValueError(f"ledger_postings.{invoice_type}: {e}") from e
    return tuple(postings)


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a configuration mapping."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_config(data: dict[str, Any]) -> BillingConfig:
    """
    Parse a merged configuration mapping into ``BillingConfig``.

    Raises:
        ValueError: on unknown keys or invalid values.
        KeyError: if a ledger posting lacks ``account`` or ``direction``.
    """
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

    return BillingConfig(
        currency=str(data.get("currency", "INR")),
        fallback_hsn_code=str(data.get("fallback_hsn_code", "0000")),
        stock_bearing_types=parse_invoice_types(
            data.get("stock_bearing_types"), "stock_bearing_types"
        ),
        ledger_postings=parse_ledger_postings(data.get("ledger_postings")),
        checksum=compute_checksum(data),
    )
