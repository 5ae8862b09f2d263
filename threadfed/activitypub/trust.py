from __future__ import annotations

from typing import TYPE_CHECKING

from threadfed.activitypub.exceptions import NotPermitted
from threadfed.models import User, Community

if TYPE_CHECKING:
    from threadfed.activitypub.storage import Storage


def verify_person_in_community(person: User, community: Community, storage: Storage) -> None:
    """Raise NotPermitted unless person may contribute to community. Reads only, never fetches."""
    if person.banned:
        raise NotPermitted(f'{person.ap_id} is banned from this instance')
    if person.deleted:
        raise NotPermitted(f'{person.ap_id} has been deleted')
    if community.deleted:
        raise NotPermitted(f'{community.ap_id} has been deleted')

    if storage.is_banned(community, person):
        raise NotPermitted(f'{person.ap_id} is banned from {community.ap_id}')

    if storage.is_moderator(community, person):
        return

    if community.restricted_to_mods:
        raise NotPermitted(f'Only moderators can post in {community.ap_id}')
    if community.local_only and not person.local:
        raise NotPermitted(f'{community.ap_id} only accepts local users')
