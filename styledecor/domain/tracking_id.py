import re
import secrets
from datetime import datetime, timezone

TRACKING_ID_PREFIX = "TSD"
TRACKING_ID_PATTERN = re.compile(r"^TSD-\d{8}-[0-9A-F]{8}$")


def generate_tracking_id(now: datetime | None = None) -> str:
    """
    Public booking code, e.g. TSD-20261019-9F3A07C2.
    Customers paste it into the track-by-id lookup, so the format is stable.

    The date part is the UTC date of `now`. A naive `now` is taken as UTC.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    date_part = moment.astimezone(timezone.utc).strftime("%Y%m%d")
    random_part = secrets.token_bytes(4).hex().upper()
    return f"{TRACKING_ID_PREFIX}-{date_part}-{random_part}"


def is_valid_tracking_id(value: str) -> bool:
    return bool(TRACKING_ID_PATTERN.match(value))
