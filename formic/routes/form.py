"""
Dashboard routes - list, create, view, update and delete forms
"""
from fastapi import APIRouter, HTTPException, Request, status, Depends
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData
from formic.config.settings import settings
from formic.database.db_operations import RecordStore, get_store
from formic.models.form import FormListResponse, FormDetailResponse, FormDeletedResponse
from formic.services.session_store import Session
from formic.utils.auth import get_session, require_login, submission_url
from formic.utils.errors import NotFoundError, ValidationError
from formic.utils.flash import add_flash, drain_flashes

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

def _first_value(form: FormData, key: str) -> str:
    values = [v for v in form.getlist(key) if isinstance(v, str)]
    return values[0] if values else ""

def _require_multi_tenant():
    if not settings.MULTI_TENANT:
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail="Forms can't be changed in single-tenant mode"
        )

async def _render_forms(store: RecordStore, session: Session, uid: str) -> FormListResponse:
    forms = await store.list_forms(uid)
    return FormListResponse(forms=forms, messages=drain_flashes(session))

async def _render_form(
    request: Request, store: RecordStore, session: Session, uid: str, form_id: str
) -> FormDetailResponse:
    form = await store.get_form(form_id)
    if form is None or not await store.owns_form(uid, form_id):
        raise NotFoundError("Form doesn't exist")

    fields = sorted(await store.list_fields(form.id))
    entries = await store.list_entries(form.id)
    return FormDetailResponse(
        form=form,
        form_url=submission_url(request, form.id),
        fields=fields,
        entries=entries,
        messages=drain_flashes(session),
    )

@router.get("/", response_model=FormListResponse)
async def show_forms(
    uid: str = Depends(require_login),
    store: RecordStore = Depends(get_store),
    session: Session = Depends(get_session),
):
    """List the caller's forms"""
    return await _render_forms(store, session, uid)

@router.post("/", response_model=FormListResponse)
async def create_form(
    request: Request,
    uid: str = Depends(require_login),
    store: RecordStore = Depends(get_store),
    session: Session = Depends(get_session),
):
    """Create a form from formName / redirectURL; re-render the list on bad input"""
    body = await request.form()
    try:
        form = await store.create_form(
            uid, _first_value(body, "formName"), _first_value(body, "redirectURL")
        )
    except ValidationError as e:
        add_flash(session, "warning", e.message)
        return await _render_forms(store, session, uid)

    add_flash(session, "success", "Form created")
    return RedirectResponse(f"/dashboard/{form.id}", status_code=status.HTTP_302_FOUND)

@router.get("/{form_id}", response_model=FormDetailResponse)
async def show_form(
    form_id: str,
    request: Request,
    uid: str = Depends(require_login),
    store: RecordStore = Depends(get_store),
    session: Session = Depends(get_session),
):
    """Form details with its field registry and entries"""
    return await _render_form(request, store, session, uid, form_id)

@router.post("/{form_id}", response_model=FormDetailResponse)
async def update_form(
    form_id: str,
    request: Request,
    uid: str = Depends(require_login),
    store: RecordStore = Depends(get_store),
    session: Session = Depends(get_session),
):
    """Rename a form or change its redirect URL"""
    _require_multi_tenant()

    if await store.get_form(form_id) is None:
        raise NotFoundError("Form doesn't exist")
    if not await store.owns_form(uid, form_id):
        add_flash(session, "error", "You don't have access to that form")
        return RedirectResponse(settings.DASHBOARD_PATH, status_code=status.HTTP_302_FOUND)

    body = await request.form()
    try:
        await store.update_form(
            form_id, _first_value(body, "formName"), _first_value(body, "redirectURL")
        )
    except ValidationError as e:
        add_flash(session, "warning", e.message)
        return await _render_form(request, store, session, uid, form_id)

    add_flash(session, "info", "Form updated")
    return await _render_form(request, store, session, uid, form_id)

@router.delete("/{form_id}", response_model=FormDeletedResponse)
async def delete_form(
    form_id: str,
    uid: str = Depends(require_login),
    store: RecordStore = Depends(get_store),
    session: Session = Depends(get_session),
):
    """Soft delete: the form leaves the caller's list, its data stays"""
    _require_multi_tenant()

    if not await store.owns_form(uid, form_id):
        add_flash(session, "error", "You don't have access to that form")
        return RedirectResponse(settings.DASHBOARD_PATH, status_code=status.HTTP_302_FOUND)

    await store.delete_form(uid, form_id)
    add_flash(session, "success", "Form deleted")
    return FormDeletedResponse(id=form_id)
