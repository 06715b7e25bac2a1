"""
Static compatibility source.

Reads a local json file. Useful for dev, tests, and clusters that mount the
document into the pod.

A missing file means the configuration is absent. A file that exists but
cannot be read is reported as StoreUnavailableError.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from node_labeler.compat.sources.base import CompatibilitySource
from node_labeler.core.context import CallContext
from node_labeler.core.errors import StoreUnavailableError


@dataclass(frozen=True)
class StaticCompatibilitySource(CompatibilitySource):
    """Load the compatibility document from a local json file."""

    path: Path

    def fetch(self, ctx: CallContext) -> bytes | None:
        ctx.check()
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreUnavailableError(f"reading {self.path}: {exc}") from exc
