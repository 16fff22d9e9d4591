"""
Record store - forms, field registries, entries and ownership sets on Redis
"""
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set

import redis.asyncio as redis
from fastapi import Request

from formic.database.keys import KeyNamespace
from formic.models.form import Form, Entry, HASH_NAME, HASH_REDIRECT_URL
from formic.utils.errors import BackendError, ValidationError, backend_errors
from formic.utils.helpers import generate_id, format_submitted, utc_now_timestamp

logger = logging.getLogger(__name__)

# Attempts at drawing an id that is still free
MAX_ID_ATTEMPTS = 5


def validate_form_values(name: str, redirect_url: str) -> None:
    if not name:
        raise ValidationError("formName", "Form name can't be empty")
    if not redirect_url:
        raise ValidationError("redirectURL", "Redirect URL can't be empty")


class RecordStore:
    """
    CRUD over Forms, Field registries and Entries.

    multi_tenant keeps an active and a deleted set of form ids per owner;
    otherwise every form sits in one global set. ordered_entries indexes
    entries in a sorted set scored by submission time; otherwise a plain set.
    Multi-command writes go through MULTI/EXEC pipelines.
    """

    def __init__(
        self,
        client: redis.Redis,
        keys: KeyNamespace,
        multi_tenant: bool = True,
        ordered_entries: bool = True,
        id_bytes: int = 4,
        clock: Callable[[], int] = utc_now_timestamp,
    ):
        self.redis = client
        self.keys = keys
        self.multi_tenant = multi_tenant
        self.ordered_entries = ordered_entries
        self.id_bytes = id_bytes
        self.clock = clock

    def _listing_key(self, owner: Optional[str]) -> str:
        if self.multi_tenant:
            if not owner:
                raise ValueError("An owner is required for multi-tenant listings")
            return self.keys.owner_forms(owner)
        return self.keys.all_forms()

    async def _new_id(self, in_use: Callable[[str], Awaitable[bool]]) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = generate_id(self.id_bytes)
            if not await in_use(candidate):
                return candidate
            logger.warning("Generated id %s already in use, drawing another", candidate)
        raise BackendError("Could not allocate a free identifier")

    async def _form_id_in_use(self, form_id: str) -> bool:
        return bool(await self.redis.exists(self.keys.form(form_id)))

    async def _entry_id_in_use(self, form_id: str, entry_id: str) -> bool:
        # empty submissions have no hash, only their index membership
        index_key = self.keys.form_entries(form_id)
        if self.ordered_entries:
            return await self.redis.zscore(index_key, entry_id) is not None
        return bool(await self.redis.sismember(index_key, entry_id))

    # Forms

    @backend_errors
    async def create_form(self, owner: Optional[str], name: str, redirect_url: str) -> Form:
        validate_form_values(name, redirect_url)

        form = Form(id=await self._new_id(self._form_id_in_use), name=name, redirect_url=redirect_url)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(self.keys.form(form.id), mapping=form.to_hash())
            pipe.sadd(self._listing_key(owner), form.id)
            await pipe.execute()

        logger.info("Form %s created by %s", form.id, owner or "admin")
        return form

    @backend_errors
    async def get_form(self, form_id: str) -> Optional[Form]:
        """The form, or None when its hash carries no ID"""
        data = await self.redis.hgetall(self.keys.form(form_id))
        return Form.from_hash(data)

    @backend_errors
    async def list_forms(self, owner: Optional[str] = None) -> List[Form]:
        form_ids = await self.redis.smembers(self._listing_key(owner))
        if not form_ids:
            return []

        async with self.redis.pipeline(transaction=False) as pipe:
            for form_id in form_ids:
                pipe.hgetall(self.keys.form(form_id))
            results = await pipe.execute()

        # ids whose hash has gone away are skipped
        forms = [form for form in (Form.from_hash(data) for data in results) if form]
        return sorted(forms, key=lambda f: (f.name, f.id))

    @backend_errors
    async def owns_form(self, owner: Optional[str], form_id: str) -> bool:
        if not self.multi_tenant:
            return True
        if not owner:
            return False
        return bool(await self.redis.sismember(self.keys.owner_forms(owner), form_id))

    @backend_errors
    async def update_form(self, form_id: str, name: str, redirect_url: str) -> Form:
        """Overwrite name and redirect URL. Ownership is the caller's business."""
        validate_form_values(name, redirect_url)

        await self.redis.hset(
            self.keys.form(form_id),
            mapping={HASH_NAME: name, HASH_REDIRECT_URL: redirect_url},
        )
        return Form(id=form_id, name=name, redirect_url=redirect_url)

    @backend_errors
    async def delete_form(self, owner: str, form_id: str) -> None:
        """Soft delete: move the id to the owner's deleted set, keep all data"""
        if not self.multi_tenant:
            raise ValueError("Forms can only be deleted in multi-tenant mode")

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.sadd(self.keys.owner_deleted_forms(owner), form_id)
            pipe.srem(self.keys.owner_forms(owner), form_id)
            await pipe.execute()

        logger.info("Form %s moved to deleted forms of %s", form_id, owner)

    # Fields

    @backend_errors
    async def list_fields(self, form_id: str) -> Set[str]:
        return set(await self.redis.smembers(self.keys.form_fields(form_id)))

    @backend_errors
    async def register_field(self, form_id: str, name: str) -> None:
        await self.redis.sadd(self.keys.form_fields(form_id), name)

    # Entries

    @backend_errors
    async def submit_entry(self, form_id: str, fields: Dict[str, str]) -> Entry:
        """
        Store one submission of arbitrary fields. Every field name joins the
        form's registry. Nothing is rejected here: no required fields and no
        size limit.
        """
        entry_id = await self._new_id(lambda eid: self._entry_id_in_use(form_id, eid))
        submitted = self.clock() if self.ordered_entries else None

        async with self.redis.pipeline(transaction=True) as pipe:
            if fields:
                pipe.hset(self.keys.entry(form_id, entry_id), mapping=dict(fields))
                pipe.sadd(self.keys.form_fields(form_id), *fields.keys())
            if self.ordered_entries:
                pipe.zadd(self.keys.form_entries(form_id), {entry_id: submitted})
            else:
                pipe.sadd(self.keys.form_entries(form_id), entry_id)
            await pipe.execute()

        return Entry(
            id=entry_id,
            submitted=submitted,
            submitted_display=format_submitted(submitted),
            fields=dict(fields),
        )

    @backend_errors
    async def list_entries(self, form_id: str) -> List[Entry]:
        """Entries of a form, most recent first when the index is ordered"""
        index_key = self.keys.form_entries(form_id)
        if self.ordered_entries:
            scored = await self.redis.zrevrangebyscore(index_key, "+inf", "-inf", withscores=True)
            metas = [(entry_id, int(score)) for entry_id, score in scored]
        else:
            metas = [(entry_id, None) for entry_id in await self.redis.smembers(index_key)]

        if not metas:
            return []

        async with self.redis.pipeline(transaction=False) as pipe:
            for entry_id, _ in metas:
                pipe.hgetall(self.keys.entry(form_id, entry_id))
            results = await pipe.execute()

        return [
            Entry(
                id=entry_id,
                submitted=submitted,
                submitted_display=format_submitted(submitted),
                fields=data or {},
            )
            for (entry_id, submitted), data in zip(metas, results)
        ]

    @backend_errors
    async def ping(self) -> bool:
        return bool(await self.redis.ping())


def get_store(request: Request) -> RecordStore:
    """Dependency: the store built at startup"""
    return request.app.state.store
