"""Vote service: toggles one device's vote for one format.

The toggle is one transaction on one session: the vote row and the format's
counter change together or not at all. Concurrency safety comes from the
store, not from locks in this process:

- the ``(device_id, format_id)`` primary key rejects a second insert of the
  same pair, and a delete that matches no row means another toggle got there
  first; both abort the transaction with ``VoteConflictError``;
- the counter is only ever moved with a relative ``UPDATE`` so concurrent
  voters on the same format cannot lose each other's updates.

The format's status is not checked here. Clients only offer the vote button on
``Requested`` formats; the engine accepts any existing format.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from format_poker.core.validation import is_valid_identifier
from format_poker.models.format import Format
from format_poker.models.vote import Vote
from format_poker.services.broadcaster import Broadcaster, get_broadcaster
from format_poker.services.format import (
    FormatNotFoundError,
    delete_vote,
    get_format,
    increment_votes,
    insert_vote,
    read_votes,
    vote_exists,
)

logger = logging.getLogger(__name__)


class InvalidVoteError(ValueError):
    """Raised when the device id or format id is missing or malformed."""


class StoreError(Exception):
    """The store could not complete the toggle. Nothing was changed; retry is safe."""


class VoteConflictError(StoreError):
    """A concurrent toggle for the same device and format won the race."""


class StoreUnavailableError(StoreError):
    """Connectivity or transaction failure in the store."""


@dataclass(frozen=True)
class VoteToggleResult:
    voted: bool
    votes: int


def _validate(format_id: str | None, device_id: str | None) -> None:
    if not is_valid_identifier(device_id):
        raise InvalidVoteError("missing_deviceId")
    if not is_valid_identifier(format_id):
        raise InvalidVoteError("invalid_formatId")


def toggle_vote(
    db: Session,
    format_id: str,
    device_id: str,
    broadcaster: Broadcaster | None = None,
) -> VoteToggleResult:
    """
    Flip the device's vote on a format and return the committed state.

    Adds the vote (counter +1) if the device has none, otherwise removes it
    (counter -1, never below 0). Publishes the new count to live viewers only
    after the commit succeeds.

    Raises:
        InvalidVoteError: Bad device or format id.
        FormatNotFoundError: Unknown format; nothing is changed.
        VoteConflictError: Lost a race for the same pair; rolled back.
        StoreUnavailableError: Any other store failure; rolled back.
    """
    _validate(format_id, device_id)

    try:
        if get_format(db, format_id) is None:
            raise FormatNotFoundError

        if vote_exists(db, device_id, format_id):
            if not delete_vote(db, device_id, format_id):
                raise VoteConflictError("vote already removed by a concurrent toggle")
            increment_votes(db, format_id, -1)
            voted = False
        else:
            insert_vote(db, device_id, format_id)
            increment_votes(db, format_id, 1)
            voted = True

        votes = read_votes(db, format_id)
        db.commit()
    except FormatNotFoundError:
        db.rollback()
        raise
    except VoteConflictError:
        db.rollback()
        logger.warning("Vote conflict on format %s; rolled back", format_id)
        raise
    except IntegrityError as exc:
        # Composite key: another toggle inserted the same pair first
        db.rollback()
        logger.warning("Vote conflict on format %s; rolled back", format_id)
        raise VoteConflictError("vote already cast by a concurrent toggle") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Vote toggle failed on format %s: %s", format_id, exc)
        raise StoreUnavailableError("store unavailable") from exc

    (broadcaster or get_broadcaster()).publish(format_id, votes)
    return VoteToggleResult(voted=voted, votes=votes)


def has_voted(db: Session, format_id: str, device_id: str) -> bool:
    """Check if a device has voted for a format."""
    return vote_exists(db, device_id, format_id)


def get_vote_count(db: Session, format_id: str) -> int:
    """Get the current vote count for a format (0 if unknown)."""
    fmt = get_format(db, format_id)
    if not fmt:
        return 0
    return fmt.votes


def list_votes_for_device(db: Session, device_id: str) -> list[str]:
    """Format ids the device has voted for, oldest vote first."""
    rows = db.execute(
        select(Vote.format_id)
        .join(Format, Format.id == Vote.format_id)
        .where(Vote.device_id == device_id)
        .order_by(Vote.created_at, Vote.format_id)
    )
    return list(rows.scalars())
