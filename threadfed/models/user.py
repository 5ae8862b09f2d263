"""User model"""
from __future__ import annotations
from typing import Optional
from sqlalchemy import String, Integer, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadfed import db
from threadfed.models.base import TimestampMixin, SoftDeleteMixin, ActivityPubMixin


class User(TimestampMixin, SoftDeleteMixin, ActivityPubMixin, db.Model):
    """Local and cached remote actors"""
    __tablename__ = 'user'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))   # display name

    about: Mapped[Optional[str]] = mapped_column(Text)  # markdown
    about_html: Mapped[Optional[str]] = mapped_column(Text)  # rendered HTML

    bot: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)   # site-wide ban

    ap_inbox_url: Mapped[Optional[str]] = mapped_column(String(255))
    public_key: Mapped[Optional[str]] = mapped_column(Text)

    post_replies = relationship('PostReply', back_populates='author', lazy='dynamic')
    community_memberships = relationship('CommunityMember', back_populates='user', lazy='dynamic')

    def __repr__(self) -> str:
        return f'<User {self.user_name}>'
