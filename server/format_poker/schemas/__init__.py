from format_poker.schemas.common import StatusResponse
from format_poker.schemas.format import (
    FormatCreate,
    FormatOut,
    FormatSort,
    FormatStatusUpdate,
    FormatSubmission,
)
from format_poker.schemas.vote import LiveVoteEvent, VoteRequest, VoteResponse

__all__ = [
    "StatusResponse",
    "FormatCreate",
    "FormatOut",
    "FormatSort",
    "FormatStatusUpdate",
    "FormatSubmission",
    "LiveVoteEvent",
    "VoteRequest",
    "VoteResponse",
]
