from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.schemas.booking_policies import hhmm_to_time
from app.services.booking.types import NoPolicyFallback


def get_fallback() -> NoPolicyFallback:
    """What to do when no policy applies, from settings."""
    return NoPolicyFallback(settings.NO_POLICY_FALLBACK)


def local_now(now: Optional[datetime] = None) -> datetime:
    """
    Naive wall-clock time in the configured timezone.
    A naive `now` is taken as already local; an aware one is converted.
    """
    if now is None:
        now = datetime.now(ZoneInfo(settings.TIMEZONE))
    elif now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(settings.TIMEZONE))
    return now.replace(tzinfo=None)


def shift_end_or_default(shift_end: Optional[str]) -> Optional[time]:
    """Request shift end, else DEFAULT_SHIFT_END, else None (no check)."""
    value = shift_end or settings.DEFAULT_SHIFT_END
    if not value:
        return None
    return hhmm_to_time(value)
