"""Timezone-aware UTC timestamps for model defaults.

Usage:
    from libs.common.datetime_utils import utc_now

    placed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)
