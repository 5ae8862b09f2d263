"""threadfed models package

- base.py: mixins and type aliases
- user.py: local and remote actors
- community.py: communities, memberships and bans
- content.py: posts and replies
- activitypub.py: federation logging
"""

from threadfed.models.base import (
    TimestampMixin, SoftDeleteMixin, ActivityPubMixin
)

from threadfed.models.user import User

from threadfed.models.community import (
    Community, CommunityMember, CommunityBan
)

from threadfed.models.content import Post, PostReply

from threadfed.models.activitypub import ActivityPubLog

from threadfed.utils import utcnow

__all__ = [
    'TimestampMixin', 'SoftDeleteMixin', 'ActivityPubMixin',
    'User',
    'Community', 'CommunityMember', 'CommunityBan',
    'Post', 'PostReply',
    'ActivityPubLog',
    'utcnow',
]
