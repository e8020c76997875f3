from format_poker.models.base import Base
from format_poker.models.format import Format, FormatStatus
from format_poker.models.vote import Vote

__all__ = [
    "Base",
    "Format",
    "FormatStatus",
    "Vote",
]
