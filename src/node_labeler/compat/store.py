"""
Compatibility store.

We keep the machine family to disk type mapping in memory as the normalized
view. Configuration sources deliver raw bytes and refresh replaces the whole
mapping.

Document format
{
  "e2": {"pd-standard": true, "pd-ssd": true, "pd-extreme": false},
  "n2": {"pd-balanced": true}
}

false entries are explicit negative assertions. They are validated and then
left out of the compatible set.

Concurrency
refresh builds the new mapping off to the side and swaps a single reference
under a lock. lookup reads that reference once, so readers always see a
complete snapshot and never wait on a parse.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from node_labeler.core.errors import ParseError
from node_labeler.core.types import CompatibilityMapping

logger = logging.getLogger(__name__)


def _parse_family(family: str, raw: Any) -> frozenset[str]:
    if not isinstance(raw, dict):
        raise ParseError(f"family {family!r}: expected an object of disk types, got {type(raw).__name__}")

    compatible = set()
    for disk_type, supported in raw.items():
        if not disk_type:
            raise ParseError(f"family {family!r}: empty disk type key")
        # bool check first, json numbers are not accepted as flags
        if not isinstance(supported, bool):
            raise ParseError(
                f"family {family!r}, disk type {disk_type!r}: expected boolean, got {type(supported).__name__}"
            )
        if supported:
            compatible.add(disk_type)
    return frozenset(compatible)


def parse_compatibility(raw: bytes | str | None) -> CompatibilityMapping:
    """
    Parse a compatibility document into a mapping.

    Absent or blank input yields an empty mapping. Anything that is not an
    object of objects of booleans raises ParseError.
    """
    if raw is None:
        return {}

    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"compatibility data is not valid utf-8: {exc}") from exc
    else:
        text = raw

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"compatibility data is not valid json: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError(f"compatibility data must be an object keyed by machine family, got {type(data).__name__}")

    mapping: CompatibilityMapping = {}
    for family, disks in data.items():
        if not family:
            raise ParseError("empty machine family key")
        mapping[family] = _parse_family(family, disks)
    return mapping


class CompatibilityStore:
    """
    Swappable snapshot of the compatibility mapping.

    A new store starts empty, which reconciles every node to "no disk type
    labels added" until the first successful refresh.
    """

    def __init__(self, mapping: CompatibilityMapping | None = None) -> None:
        self._lock = threading.Lock()
        self._mapping: CompatibilityMapping = dict(mapping or {})

    def refresh(self, raw: bytes | str | None) -> None:
        """
        Replace the mapping with the parsed contents of raw.

        On ParseError the current mapping is left untouched and the error is
        raised to the caller.
        """
        mapping = parse_compatibility(raw)
        with self._lock:
            self._mapping = mapping
        logger.info("compatibility mapping refreshed: %d machine families", len(mapping))

    def lookup(self, family: str) -> frozenset[str] | None:
        """
        Return compatible disk types for family.

        None means the family is unknown. An empty frozenset means the family
        is known and supports nothing.
        """
        return self._mapping.get(family)

    def families(self) -> list[str]:
        """Return sorted family names. Useful for deterministic outputs."""
        return sorted(self._mapping.keys())

    def snapshot(self) -> CompatibilityMapping:
        """Return the current mapping. Treat it as read only."""
        return self._mapping

    def __len__(self) -> int:
        return len(self._mapping)
