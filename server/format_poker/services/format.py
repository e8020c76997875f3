"""Format store and catalog queries.

Admin writes (create, status change, delete) commit on their own. The vote
primitives at the bottom (``vote_exists``, ``insert_vote``, ``delete_vote``,
``increment_votes``) never commit: the vote service composes them inside a
single transaction.
"""

import logging

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from format_poker.models.format import Format, FormatStatus
from format_poker.models.vote import Vote
from format_poker.schemas.format import FormatSort

logger = logging.getLogger(__name__)


class FormatNotFoundError(Exception):
    """Raised when a format does not exist."""


class DuplicateFormatError(ValueError):
    """Raised when a format name already exists (case-insensitive)."""


def get_format(db: Session, format_id: str) -> Format | None:
    """Get a format by its ID."""
    return db.get(Format, format_id)


def get_format_by_name(db: Session, name: str) -> Format | None:
    """Case-insensitive lookup by name."""
    return db.query(Format).filter(func.lower(Format.name) == name.lower()).first()


def list_formats(
    db: Session,
    q: str | None = None,
    kind: str | None = None,
    status: str | None = None,
    sort: FormatSort | str | None = FormatSort.VOTES_DESC,
) -> list[Format]:
    """List the catalog with optional filters.

    ``q`` is a case-insensitive substring of the name; ``kind`` and ``status``
    match exactly. Vote-ordered sorts break ties newest first.
    """
    query = db.query(Format)

    q = q.strip() if q else ""
    if q:
        query = query.filter(func.lower(Format.name).contains(q.lower(), autoescape=True))
    if kind and kind.strip():
        query = query.filter(Format.kind == kind.strip())
    if status and status.strip():
        query = query.filter(Format.status == status.strip())

    if not isinstance(sort, FormatSort):
        sort = FormatSort.parse(sort)

    if sort == FormatSort.VOTES_ASC:
        order = (Format.votes.asc(), Format.created_at.desc())
    elif sort == FormatSort.NAME_ASC:
        order = (Format.name.asc(),)
    elif sort == FormatSort.NAME_DESC:
        order = (Format.name.desc(),)
    elif sort == FormatSort.NEWEST:
        order = (Format.created_at.desc(),)
    else:
        order = (Format.votes.desc(), Format.created_at.desc())

    return query.order_by(*order).all()


def create_format(
    db: Session,
    name: str,
    kind: str,
    status: FormatStatus = FormatStatus.REQUESTED,
) -> Format:
    """Insert a new format.

    Raises:
        DuplicateFormatError: If a format with the same name (any case) exists.
    """
    if get_format_by_name(db, name):
        raise DuplicateFormatError(f"Format '{name}' already exists")

    fmt = Format(name=name, kind=kind, status=status.value)
    db.add(fmt)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same name
        db.rollback()
        raise DuplicateFormatError(f"Format '{name}' already exists") from exc
    db.refresh(fmt)
    logger.info("Format created: %s (%s, %s)", fmt.name, fmt.kind, fmt.status)
    return fmt


def submit_format(db: Session, name: str, kind: str) -> Format:
    """Public submission: the format waits in review until an admin moves it."""
    return create_format(db, name, kind, status=FormatStatus.IN_REVIEW)


def update_format_status(db: Session, format_id: str, status: FormatStatus) -> Format:
    fmt = get_format(db, format_id)
    if not fmt:
        raise FormatNotFoundError
    fmt.status = status.value
    db.commit()
    db.refresh(fmt)
    logger.info("Format %s status -> %s", fmt.id, fmt.status)
    return fmt


def delete_format(db: Session, format_id: str) -> int:
    """Delete a format and all its votes in one transaction.

    Returns the number of vote rows removed.
    """
    fmt = get_format(db, format_id)
    if not fmt:
        raise FormatNotFoundError

    result = db.execute(delete(Vote).where(Vote.format_id == format_id))
    db.delete(fmt)
    db.commit()
    removed = result.rowcount or 0
    logger.info("Format %s deleted with %d vote(s)", format_id, removed)
    return removed


def seed_formats(db: Session, rows: list[tuple[str, str, str]]) -> int:
    """Insert (name, kind, status) rows, skipping names that already exist.

    Returns the number of formats inserted.
    """
    inserted = 0
    seen: set[str] = set()
    for name, kind, status in rows:
        if name.lower() in seen or get_format_by_name(db, name):
            continue
        seen.add(name.lower())
        db.add(Format(name=name, kind=kind, status=FormatStatus(status).value))
        inserted += 1
    db.commit()
    return inserted


# ── Vote primitives (no commit) ─────────────────────────────────────────────


def vote_exists(db: Session, device_id: str, format_id: str) -> bool:
    return db.get(Vote, (device_id, format_id)) is not None


def insert_vote(db: Session, device_id: str, format_id: str) -> None:
    """Add a vote row and flush so the composite key is checked immediately.

    Raises IntegrityError when the pair already exists.
    """
    db.add(Vote(device_id=device_id, format_id=format_id))
    db.flush()


def delete_vote(db: Session, device_id: str, format_id: str) -> bool:
    """Delete a vote row. Returns False if no row was deleted."""
    result = db.execute(
        delete(Vote).where(Vote.device_id == device_id, Vote.format_id == format_id)
    )
    return (result.rowcount or 0) > 0


def increment_votes(db: Session, format_id: str, delta: int) -> None:
    """Adjust the counter relative to its stored value, clamped at 0 in SQL."""
    db.execute(
        update(Format)
        .where(Format.id == format_id)
        .values(
            votes=case(
                (Format.votes + delta > 0, Format.votes + delta),
                else_=0,
            )
        )
        .execution_options(synchronize_session=False)
    )


def read_votes(db: Session, format_id: str) -> int:
    """Read the counter straight from the store, bypassing the identity map."""
    return db.execute(select(Format.votes).where(Format.id == format_id)).scalar_one()
