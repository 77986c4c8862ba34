"""Online flag bookkeeping for connected accounts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.timeutils import utcnow
from app.models import User, user_friends


def mark_online(db: Session, user_id: int) -> User | None:
    """Flag ``user_id`` as online; ``None`` when the account does not exist."""

    user = db.get(User, user_id)
    if user is None:
        return None
    user.is_online = True
    db.commit()
    db.refresh(user)
    return user


def mark_offline(db: Session, user_id: int) -> User | None:
    user = db.get(User, user_id)
    if user is None:
        return None
    user.is_online = False
    user.last_seen = utcnow()
    db.commit()
    db.refresh(user)
    return user


def friend_ids(db: Session, user_id: int) -> list[int]:
    stmt = select(user_friends.c.friend_id).where(user_friends.c.user_id == user_id)
    return list(db.execute(stmt).scalars())


def are_friends(db: Session, user_id: int, other_id: int) -> bool:
    # Either direction counts; both rows normally exist.
    stmt = select(user_friends.c.user_id).where(
        ((user_friends.c.user_id == user_id) & (user_friends.c.friend_id == other_id))
        | ((user_friends.c.user_id == other_id) & (user_friends.c.friend_id == user_id))
    )
    return db.execute(stmt.limit(1)).first() is not None


def presence_payload(user: User) -> dict:
    return {"userId": user.id, "isOnline": user.is_online}
