"""
Helper utility functions
"""
import secrets
from datetime import datetime
from typing import Optional
import pytz

def generate_id(nbytes: int) -> str:
    """Random lowercase hex token, 2 * nbytes characters long"""
    if nbytes < 1:
        raise ValueError(f"Invalid id width: {nbytes}")
    return secrets.token_hex(nbytes)

def format_submitted(timestamp: Optional[int]) -> Optional[str]:
    """Render a Unix timestamp as e.g. 'Jan  2 15:04:05' (UTC)"""
    if timestamp is None:
        return None
    dt = datetime.fromtimestamp(timestamp, pytz.utc)
    return f"{dt:%b} {dt.day:>2} {dt:%H:%M:%S}"

def utc_now_timestamp() -> int:
    """Current Unix time in whole seconds"""
    return int(datetime.now(pytz.utc).timestamp())
