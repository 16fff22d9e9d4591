"""
Public submission route - anyone may post an entry to a form
"""
from fastapi import APIRouter, HTTPException, Request, status, Depends
from fastapi.responses import RedirectResponse
from formic.database.db_operations import RecordStore, get_store
from formic.utils.errors import NotFoundError

router = APIRouter(tags=["Submissions"])

@router.post("/s/{form_id}")
async def submit_entry(
    form_id: str,
    request: Request,
    store: RecordStore = Depends(get_store),
):
    """Store the posted fields as an entry and send the visitor on to the form's redirect URL"""
    form = await store.get_form(form_id)
    if form is None:
        raise NotFoundError("Form doesn't exist")

    body = await request.form()
    fields = {}
    for field in body.keys():
        # first value wins for repeated keys
        value = body.getlist(field)[0]
        if not isinstance(value, str):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File uploads are not accepted"
            )
        fields[field] = value

    await store.submit_entry(form.id, fields)
    return RedirectResponse(form.redirect_url, status_code=status.HTTP_302_FOUND)
