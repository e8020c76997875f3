"""Catalog endpoints: public listing and submission, admin management."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi import Request as FastAPIRequest
from sqlalchemy.orm import Session

from format_poker.api.deps import get_db
from format_poker.core.admin_auth import verify_admin_key
from format_poker.core.rate_limit import limiter, submission_rate_limit
from format_poker.schemas.common import StatusResponse
from format_poker.schemas.format import (
    FormatCreate,
    FormatOut,
    FormatSort,
    FormatStatusUpdate,
    FormatSubmission,
)
from format_poker.services.format import (
    DuplicateFormatError,
    FormatNotFoundError,
    create_format,
    delete_format,
    get_format,
    list_formats,
    submit_format,
    update_format_status,
)

router = APIRouter()


@router.get("", response_model=list[FormatOut])
def list_catalog(
    q: str | None = Query(default=None, max_length=100),
    kind: str | None = Query(default=None, max_length=20),
    status: str | None = Query(default=None, max_length=20),
    sort: str | None = Query(default=None, max_length=20),
    db: Session = Depends(get_db),
) -> list[FormatOut]:
    """List formats. Unknown sort values fall back to votes-desc."""
    formats = list_formats(db, q=q, kind=kind, status=status, sort=FormatSort.parse(sort))
    return [FormatOut.model_validate(fmt) for fmt in formats]


@router.post("", response_model=FormatOut, status_code=status.HTTP_201_CREATED)
def admin_create_format(
    format_data: FormatCreate,
    db: Session = Depends(get_db),
    _admin: None = Depends(verify_admin_key),
) -> FormatOut:
    try:
        fmt = create_format(db, format_data.name, format_data.kind, format_data.status)
    except DuplicateFormatError:
        raise HTTPException(status_code=409, detail="Format already exists")
    return FormatOut.model_validate(fmt)


@router.post("/submissions", response_model=FormatOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(submission_rate_limit)
def submit_for_review(
    request: FastAPIRequest,
    submission: FormatSubmission,
    db: Session = Depends(get_db),
) -> FormatOut:
    """Public submission. The format is created In Review and takes no votes until approved."""
    try:
        fmt = submit_format(db, submission.name, submission.kind)
    except DuplicateFormatError:
        raise HTTPException(status_code=409, detail="Format already exists")
    return FormatOut.model_validate(fmt)


@router.get("/{format_id}", response_model=FormatOut)
def get_one_format(format_id: str, db: Session = Depends(get_db)) -> FormatOut:
    fmt = get_format(db, format_id)
    if not fmt:
        raise HTTPException(status_code=404, detail="Format not found")
    return FormatOut.model_validate(fmt)


@router.put("/{format_id}/status", response_model=FormatOut)
def admin_update_status(
    format_id: str,
    update_data: FormatStatusUpdate,
    db: Session = Depends(get_db),
    _admin: None = Depends(verify_admin_key),
) -> FormatOut:
    try:
        fmt = update_format_status(db, format_id, update_data.status)
    except FormatNotFoundError:
        raise HTTPException(status_code=404, detail="Format not found")
    return FormatOut.model_validate(fmt)


@router.delete("/{format_id}", response_model=StatusResponse)
def admin_delete_format(
    format_id: str,
    db: Session = Depends(get_db),
    _admin: None = Depends(verify_admin_key),
) -> StatusResponse:
    """Delete a format; its votes go with it."""
    try:
        delete_format(db, format_id)
    except FormatNotFoundError:
        raise HTTPException(status_code=404, detail="Format not found")
    return StatusResponse(status="deleted")
