"""
Flash message schema
"""
from pydantic import BaseModel
from typing import Literal

MessageType = Literal["info", "success", "warning", "error"]

class Message(BaseModel):
    type: MessageType
    text: str
