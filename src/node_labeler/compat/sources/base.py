"""
Compatibility source interfaces.

Goal
Provide pluggable delivery of the raw compatibility document.

Sources return bytes and leave parsing to CompatibilityStore, so every
source shares exactly one set of parse rules.
"""

from __future__ import annotations

from typing import Protocol

from node_labeler.core.context import CallContext


class CompatibilitySource(Protocol):
    """
    Compatibility source interface.

    fetch returns the raw document, or None when the configuration is absent.
    Absent configuration is not an error. The store treats it as an empty
    mapping.
    """

    def fetch(self, ctx: CallContext) -> bytes | None:
        """Fetch the raw compatibility document."""
