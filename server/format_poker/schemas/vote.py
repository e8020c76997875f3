"""Pydantic schemas for voting."""

from pydantic import BaseModel, ConfigDict, Field


class VoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so a missing id is reported as 400 by the vote service
    device_id: str | None = Field(default=None, alias="deviceId")


class VoteResponse(BaseModel):
    voted: bool
    votes: int


class LiveVoteEvent(BaseModel):
    """Payload of one live-update frame."""

    id: str
    votes: int
