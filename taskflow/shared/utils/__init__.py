"""Shared helpers: UTC datetimes and id generation."""

from taskflow.shared.utils.datetime import ensure_utc, utc_now
from taskflow.shared.utils.generators import generate_cuid

__all__ = ["ensure_utc", "generate_cuid", "utc_now"]
