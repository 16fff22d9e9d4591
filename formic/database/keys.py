"""
Key namespace - maps (kind, id, relation) to flat Redis keys
"""


class KeyNamespace:
    """Builds colon-joined keys under a fixed root prefix, e.g. formic:form:<id>:fields"""

    def __init__(self, prefix: str = "formic"):
        self.prefix = prefix

    def key(self, *parts: str) -> str:
        return ":".join((self.prefix,) + tuple(parts))

    def form(self, form_id: str) -> str:
        return self.key("form", form_id)

    def form_fields(self, form_id: str) -> str:
        return self.key("form", form_id, "fields")

    def form_entries(self, form_id: str) -> str:
        return self.key("form", form_id, "entries")

    def entry(self, form_id: str, entry_id: str) -> str:
        return self.key("form", form_id, "entry", entry_id)

    def owner_forms(self, uid: str) -> str:
        return self.key(uid, "forms")

    def owner_deleted_forms(self, uid: str) -> str:
        return self.key(uid, "deletedForms")

    def all_forms(self) -> str:
        # single-tenant listing set
        return self.key("forms")
