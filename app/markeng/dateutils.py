"""Indian Standard Time helpers used for display stamps and default dates."""
from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")


def ist_now() -> datetime:
    return datetime.now(IST)


def ist_today() -> date:
    return ist_now().date()


def ist_iso_date(moment: datetime | None = None) -> str:
    """YYYY-MM-DD of the given (or current) instant, as seen in IST."""
    return _as_ist(moment).date().isoformat()


def format_ist_time(moment: datetime | None = None) -> str:
    """hh:mm:ss am/pm, matching the en-IN locale rendering."""
    return _as_ist(moment).strftime("%I:%M:%S %p").lower()


def format_ist_date(moment: datetime | date | None = None) -> str:
    """DD Mon YYYY."""
    if isinstance(moment, date) and not isinstance(moment, datetime):
        return moment.strftime("%d %b %Y")
    return _as_ist(moment).strftime("%d %b %Y")


def ist_timestamp(moment: datetime | None = None) -> str:
    return f"{format_ist_date(moment)} {format_ist_time(moment)}"


def _as_ist(moment: datetime | None) -> datetime:
    if moment is None:
        return ist_now()
    if moment.tzinfo is None:
        # naive values in the DB are UTC
        moment = moment.replace(tzinfo=ZoneInfo("UTC"))
    return moment.astimezone(IST)
