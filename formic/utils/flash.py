"""
One-shot flash messages kept in the session
"""
from typing import List

from formic.models.message import Message
from formic.services.session_store import Session

FLASH_KEY = "flashes"
FLASH_CATEGORIES = ("info", "success", "warning", "error")


def add_flash(session: Session, category: str, text: str) -> None:
    if category not in FLASH_CATEGORIES:
        raise ValueError(f"Unknown flash category: {category}")
    flashes = dict(session.get(FLASH_KEY) or {})
    flashes[category] = list(flashes.get(category, [])) + [text]
    session[FLASH_KEY] = flashes


def drain_flashes(session: Session) -> List[Message]:
    """
    Pop every pending message, grouped by category in the order
    info, success, warning, error. The session is marked modified so the
    emptied queue is saved with this response.
    """
    flashes = session.pop(FLASH_KEY) or {}
    messages = []
    for category in FLASH_CATEGORIES:
        for text in flashes.get(category, []):
            messages.append(Message(type=category, text=text))
    return messages
