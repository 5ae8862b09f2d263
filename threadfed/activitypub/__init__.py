from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import Blueprint, current_app

bp = Blueprint('activitypub', __name__)


@dataclass(slots=True)
class Federation:
    """The storage, transport, resolver and converters of one app, wired together"""
    storage: Any
    transport: Any
    resolver: Any
    people: Any
    communities: Any
    posts: Any
    comments: Any


def build_federation(config: Mapping[str, Any], transport, storage=None) -> Federation:
    from threadfed.activitypub.objects.comment import CommentConverter
    from threadfed.activitypub.objects.community import CommunityConverter
    from threadfed.activitypub.objects.person import PersonConverter
    from threadfed.activitypub.objects.post import PostConverter
    from threadfed.activitypub.resolver import RemoteObjectResolver
    from threadfed.activitypub.storage import Storage
    from threadfed.activitypub.types import ObjectKind

    if storage is None:
        storage = Storage()
    resolver = RemoteObjectResolver(storage, transport)
    federation = Federation(storage=storage, transport=transport, resolver=resolver,
                            people=PersonConverter(storage, resolver, config),
                            communities=CommunityConverter(storage, resolver, config),
                            posts=PostConverter(storage, resolver, config),
                            comments=CommentConverter(storage, resolver, config))
    resolver.register(ObjectKind.PERSON, federation.people)
    resolver.register(ObjectKind.COMMUNITY, federation.communities)
    resolver.register(ObjectKind.POST, federation.posts)
    resolver.register(ObjectKind.COMMENT, federation.comments)
    return federation


def get_federation() -> Federation:
    """The current app's Federation, built on first use with the default HTTP transport"""
    federation = current_app.extensions.get('threadfed')
    if federation is None:
        from threadfed import httpx_client
        from threadfed.activitypub.transport import HttpTransport
        federation = build_federation(current_app.config, HttpTransport.from_config(current_app.config, httpx_client))
        current_app.extensions['threadfed'] = federation
    return federation


from threadfed.activitypub import routes
