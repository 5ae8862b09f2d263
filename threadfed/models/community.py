"""Communities, who moderates them and who is banned from them"""
from __future__ import annotations
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, Text, DateTime, ForeignKey, or_, select
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadfed import db
from threadfed.models.base import TimestampMixin, SoftDeleteMixin, ActivityPubMixin, UserId, CommunityId
from threadfed.utils import utcnow

if TYPE_CHECKING:
    from threadfed.models.user import User


class Community(TimestampMixin, SoftDeleteMixin, ActivityPubMixin, db.Model):
    """A Group. Posts belong to exactly one of these."""
    __tablename__ = 'community'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)   # preferredUsername
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    description_html: Mapped[Optional[str]] = mapped_column(Text)
    nsfw: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # who may post
    restricted_to_mods: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    local_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    ap_inbox_url: Mapped[Optional[str]] = mapped_column(String(255))
    ap_moderators_url: Mapped[Optional[str]] = mapped_column(String(255))
    public_key: Mapped[Optional[str]] = mapped_column(Text)

    posts = relationship('Post', back_populates='community', lazy='dynamic')
    members = relationship('CommunityMember', back_populates='community', lazy='dynamic',
                           cascade='all, delete-orphan')

    def is_moderator(self, user: User) -> bool:
        stmt = select(CommunityMember.user_id).where(CommunityMember.community_id == self.id,
                                                     CommunityMember.user_id == user.id,
                                                     CommunityMember.is_moderator.is_(True))
        return db.session.execute(stmt).first() is not None

    def is_banned(self, user: User) -> bool:
        """Active bans only. A ban with a ban_until in the past has lapsed."""
        stmt = select(CommunityBan.id).where(CommunityBan.community_id == self.id,
                                             CommunityBan.user_id == user.id,
                                             CommunityBan.active.is_(True),
                                             or_(CommunityBan.ban_until.is_(None), CommunityBan.ban_until > utcnow()))
        return db.session.execute(stmt).first() is not None

    def __repr__(self) -> str:
        return f'<Community {self.name}>'


class CommunityMember(TimestampMixin, db.Model):
    __tablename__ = 'community_member'

    community_id: Mapped[CommunityId] = mapped_column(Integer, ForeignKey('community.id'), primary_key=True)
    user_id: Mapped[UserId] = mapped_column(Integer, ForeignKey('user.id'), primary_key=True)
    is_moderator: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    community = relationship('Community', back_populates='members')
    user = relationship('User', back_populates='community_memberships')


class CommunityBan(TimestampMixin, db.Model):
    __tablename__ = 'community_ban'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    community_id: Mapped[CommunityId] = mapped_column(Integer, ForeignKey('community.id'), nullable=False,
                                                      index=True)
    user_id: Mapped[UserId] = mapped_column(Integer, ForeignKey('user.id'), nullable=False, index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    ban_until: Mapped[Optional[datetime]] = mapped_column(DateTime)   # None is permanent
    reason: Mapped[Optional[str]] = mapped_column(String(256))

    community = relationship('Community')
    user = relationship('User')
