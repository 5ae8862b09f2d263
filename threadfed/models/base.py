"""Base classes and mixins for threadfed models"""
from __future__ import annotations
from typing import Optional
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from threadfed.utils import utcnow


# Type aliases for better readability
type UserId = int
type CommunityId = int
type PostId = int
type ReplyId = int
type HttpUrl = str


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
        index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        onupdate=utcnow
    )


class SoftDeleteMixin:
    """Mixin for soft deletion. Rows touched by federation are never removed from the table."""
    deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def soft_delete(self) -> None:
        """Mark record as deleted"""
        self.deleted = True
        if self.deleted_at is None:
            self.deleted_at = utcnow()


class ActivityPubMixin:
    """Mixin for ActivityPub properties"""
    ap_id: Mapped[Optional[HttpUrl]] = mapped_column(String(255), index=True, unique=True)
    ap_domain: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    ap_fetched_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    local: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @classmethod
    def get_by_ap_id(cls, ap_id: str):
        from threadfed import db
        return db.session.query(cls).filter_by(ap_id=ap_id).first()
