"""
Form model and view schemas for the dashboard
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from formic.models.message import Message

# Hash field names as stored in Redis
HASH_ID = "ID"
HASH_NAME = "Name"
HASH_REDIRECT_URL = "RedirectURL"

class Form(BaseModel):
    id: str
    name: str
    redirect_url: str

    @classmethod
    def from_hash(cls, data: Dict[str, str]) -> Optional["Form"]:
        """Build a Form from HGETALL output; None when the ID field is missing"""
        if not data or not data.get(HASH_ID):
            return None
        return cls(
            id=data[HASH_ID],
            name=data.get(HASH_NAME, ""),
            redirect_url=data.get(HASH_REDIRECT_URL, ""),
        )

    def to_hash(self) -> Dict[str, str]:
        return {
            HASH_ID: self.id,
            HASH_NAME: self.name,
            HASH_REDIRECT_URL: self.redirect_url,
        }

class Entry(BaseModel):
    id: str
    submitted: Optional[int] = None  # Unix seconds; None in the unordered index
    submitted_display: Optional[str] = None
    fields: Dict[str, str] = Field(default_factory=dict)

class FormListResponse(BaseModel):
    forms: List[Form] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)

class FormDetailResponse(BaseModel):
    form: Form
    form_url: str
    fields: List[str] = Field(default_factory=list)
    entries: List[Entry] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)

class FormDeletedResponse(BaseModel):
    id: str
    deleted: bool = True
