"""JST wall-clock helpers used to key reports by run date and time."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

JST = ZoneInfo("Asia/Tokyo")


@dataclass(frozen=True)
class JstParts:
    date: str       # YYYY-MM-DD
    time: str       # HH:MM:SS
    run_id: str     # HHMMSS
    timestamp: str  # YYYY-MM-DDTHH:MM:SS+09:00


def jst_parts(now: Optional[datetime] = None) -> JstParts:
    moment = (now or datetime.now(timezone.utc)).astimezone(JST)
    date = moment.strftime("%Y-%m-%d")
    time = moment.strftime("%H:%M:%S")
    return JstParts(
        date=date,
        time=time,
        run_id=time.replace(":", ""),
        timestamp=f"{date}T{time}+09:00",
    )
