"""Timezone helpers."""

from datetime import UTC


def as_utc(moment):
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment
