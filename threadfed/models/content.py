"""Posts and replies"""
from __future__ import annotations
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from flask import current_app
from sqlalchemy import String, Integer, Boolean, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadfed import db
from threadfed.models.base import (
    TimestampMixin, SoftDeleteMixin, ActivityPubMixin,
    UserId, CommunityId, PostId, ReplyId
)
from threadfed.utils import markdown_to_html, utcnow

if TYPE_CHECKING:
    from threadfed.models.user import User


class Post(TimestampMixin, SoftDeleteMixin, ActivityPubMixin, db.Model):
    """Post model. Every reply thread hangs off one of these."""
    __tablename__ = 'post'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text)  # markdown
    body_html: Mapped[Optional[str]] = mapped_column(Text)  # rendered HTML
    url: Mapped[Optional[str]] = mapped_column(String(2048))

    user_id: Mapped[UserId] = mapped_column(Integer, ForeignKey('user.id'), nullable=False, index=True)
    community_id: Mapped[CommunityId] = mapped_column(Integer, ForeignKey('community.id'), nullable=False, index=True)

    comments_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    nsfw: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    removed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    posted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    author = relationship('User')
    community = relationship('Community', back_populates='posts')
    replies = relationship('PostReply', back_populates='post', lazy='dynamic')

    @property
    def is_locked(self) -> bool:
        return not self.comments_enabled

    def __repr__(self) -> str:
        return f'<Post {self.id}: {self.title}>'


class PostReply(TimestampMixin, SoftDeleteMixin, ActivityPubMixin, db.Model):
    """A comment on a post, optionally nested under another comment"""
    __tablename__ = 'post_reply'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Content
    body: Mapped[str] = mapped_column(Text, nullable=False, default='')  # markdown
    body_html: Mapped[str] = mapped_column(Text, nullable=False, default='')  # rendered HTML
    # body was written here, or arrived as a text/markdown source block, so it can be sent on without loss
    source_exact: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Hierarchy
    post_id: Mapped[PostId] = mapped_column(Integer, ForeignKey('post.id'), nullable=False, index=True)
    parent_id: Mapped[Optional[ReplyId]] = mapped_column(Integer, ForeignKey('post_reply.id'), index=True)
    root_id: Mapped[Optional[ReplyId]] = mapped_column(Integer, ForeignKey('post_reply.id'), index=True)
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Authorship
    user_id: Mapped[UserId] = mapped_column(Integer, ForeignKey('user.id'), nullable=False, index=True)

    # Lifecycle
    removed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    posted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    edited_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # fields of the incoming object we don't understand, sent back out untouched
    ap_extensions: Mapped[Optional[dict]] = mapped_column(JSON)

    post = relationship('Post', back_populates='replies')
    author = relationship('User', back_populates='post_replies')

    @classmethod
    def new_local(cls, author: 'User', post: Post, body: str, in_reply_to: Optional['PostReply'] = None):
        """Create a reply written on this instance. The caller commits."""
        if in_reply_to is not None:
            parent_id = in_reply_to.id
            depth = in_reply_to.depth + 1
            root_id = in_reply_to.root_id or in_reply_to.id
        else:
            parent_id = None
            depth = 0
            root_id = None

        reply = PostReply(user_id=author.id, post_id=post.id, parent_id=parent_id, root_id=root_id, depth=depth,
                          body=body, body_html=markdown_to_html(body), source_exact=True, local=True,
                          ap_domain=current_app.config['SERVER_NAME'], posted_at=utcnow())
        db.session.add(reply)
        db.session.flush()
        reply.ap_id = reply.profile_id()
        db.session.flush()
        return reply

    def profile_id(self) -> str:
        if self.ap_id:
            return self.ap_id
        return f"{current_app.config['HTTP_PROTOCOL']}://{current_app.config['SERVER_NAME']}/comment/{self.id}"

    @property
    def is_gone(self) -> bool:
        """Deleted by its author or removed by a moderator"""
        return self.deleted or self.removed

    def __repr__(self) -> str:
        return f'<PostReply {self.id} to Post {self.post_id}>'
