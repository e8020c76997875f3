"""Public voting endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi import Request as FastAPIRequest
from sqlalchemy.orm import Session

from format_poker.api.deps import get_db, get_live_broadcaster
from format_poker.core.rate_limit import limiter, vote_rate_limit
from format_poker.core.validation import is_valid_identifier
from format_poker.schemas.vote import VoteRequest, VoteResponse
from format_poker.services.broadcaster import Broadcaster
from format_poker.services.format import FormatNotFoundError
from format_poker.services.vote import (
    InvalidVoteError,
    StoreError,
    VoteConflictError,
    list_votes_for_device,
    toggle_vote,
)

router = APIRouter()


@router.post("/formats/{format_id}/vote", response_model=VoteResponse)
@limiter.limit(vote_rate_limit)
def vote_toggle(
    request: FastAPIRequest,
    format_id: str,
    vote_data: VoteRequest | None = None,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_live_broadcaster),
) -> VoteResponse:
    """Toggle this device's vote. Calling it twice restores the original state."""
    device_id = vote_data.device_id if vote_data else None
    try:
        result = toggle_vote(db, format_id, device_id, broadcaster=broadcaster)
    except InvalidVoteError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FormatNotFoundError:
        raise HTTPException(status_code=404, detail="Format not found")
    except VoteConflictError:
        raise HTTPException(status_code=409, detail="Vote conflict, please retry")
    except StoreError:
        raise HTTPException(status_code=503, detail="Store unavailable, please retry")

    return VoteResponse(voted=result.voted, votes=result.votes)


@router.get("/votes/{device_id}", response_model=list[str])
def votes_by_device(device_id: str, db: Session = Depends(get_db)) -> list[str]:
    """Format ids this device has voted for."""
    if not is_valid_identifier(device_id):
        raise HTTPException(status_code=400, detail="missing_deviceId")
    return list_votes_for_device(db, device_id)
