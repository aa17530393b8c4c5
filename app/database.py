from __future__ import annotations

import datetime
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker


DATA_DIR = Path(__file__).resolve().parent / "data"
DATA_DIR.mkdir(parents=True, exist_ok=True)
STORE_DATABASE_URL = f"sqlite:///{(DATA_DIR / 'productivity.db').as_posix()}"


class StoreBase(DeclarativeBase):
    """Metadata for the per-profile key-value store living in productivity.db."""

    pass


class ProfileStoreEntry(StoreBase):
    __tablename__ = "profile_store"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(80), nullable=False)
    key: Mapped[str] = mapped_column(String(80), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.datetime.now(datetime.timezone.utc),
        onupdate=lambda: datetime.datetime.now(datetime.timezone.utc),
    )

    __table_args__ = (UniqueConstraint("profile_id", "key", name="uq_profile_store_profile_key"),)


store_engine = create_engine(
    STORE_DATABASE_URL,
    echo=False,
    future=True,
)
StoreSessionLocal = sessionmaker(bind=store_engine, expire_on_commit=False, future=True)


def init_database() -> None:
    StoreBase.metadata.create_all(store_engine)


def _entry(session, profile_id: str, key: str) -> Optional[ProfileStoreEntry]:
    return session.scalars(
        select(ProfileStoreEntry).where(
            ProfileStoreEntry.profile_id == profile_id,
            ProfileStoreEntry.key == key,
        )
    ).first()


def get_value(session, profile_id: str, key: str) -> Optional[str]:
    entry = _entry(session, profile_id, key)
    return entry.value if entry else None


def put_value(session, profile_id: str, key: str, value: str) -> ProfileStoreEntry:
    """Stage ``value`` under (profile_id, key); the caller commits."""
    entry = _entry(session, profile_id, key)
    if entry is None:
        entry = ProfileStoreEntry(profile_id=profile_id, key=key, value=value)
        session.add(entry)
    else:
        entry.value = value
    session.flush()
    return entry


def list_profiles(session) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for profile_id in session.scalars(select(ProfileStoreEntry.profile_id)):
        counts[profile_id] = counts.get(profile_id, 0) + 1
    return counts
