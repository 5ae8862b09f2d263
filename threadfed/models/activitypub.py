"""ActivityPub bookkeeping models"""
from __future__ import annotations
from typing import Optional
from sqlalchemy import String, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from threadfed import db
from threadfed.models.base import TimestampMixin


class ActivityPubLog(TimestampMixin, db.Model):
    """One row per processed incoming object, when LOG_ACTIVITYPUB_TO_DB is on"""
    __tablename__ = 'activity_pub_log'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    direction: Mapped[str] = mapped_column(String(3), nullable=False)  # 'in' or 'out'
    activity_id: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    activity_type: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    result: Mapped[Optional[str]] = mapped_column(String(10))  # 'success', 'failure', etc.
    activity_json: Mapped[Optional[str]] = mapped_column(Text)

    exception_message: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f'<ActivityPubLog {self.direction} {self.activity_type} {self.result}>'
