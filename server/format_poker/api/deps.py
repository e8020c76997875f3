from collections.abc import Generator

from sqlalchemy.orm import Session

from format_poker.db.session import SessionLocal
from format_poker.services.broadcaster import Broadcaster, get_broadcaster


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_live_broadcaster() -> Broadcaster:
    return get_broadcaster()
