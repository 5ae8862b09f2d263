from __future__ import annotations

from threadfed.activitypub.objects import ApObjectConverter, source_to_wire
from threadfed.activitypub.schema import group_schema
from threadfed.activitypub.types import ObjectKind, ObjectJson, ResolutionBudget, ExactSource, DerivedOnly
from threadfed.constants import AP_CONTEXT
from threadfed.models import Community
from threadfed.utils import markdown_to_html, domain_from_url, utcnow, ap_datetime


class CommunityConverter(ApObjectConverter):
    """Groups. The moderator list is a collection and is not fetched here."""
    kind = ObjectKind.COMMUNITY
    schema = group_schema

    def from_wire(self, object_json: ObjectJson, expected_domain: str, budget: ResolutionBudget) -> Community:
        group = self.load(object_json)
        self.check_domain(group['id'], expected_domain)

        description, _ = self.body_from_object(group, html_field='summary')
        form = {
            'ap_id': group['id'],
            'name': group['preferredUsername'][:255],
            'title': (group['name'] or group['preferredUsername'])[:255],
            'description': description,
            'description_html': markdown_to_html(description),
            'nsfw': group['sensitive'],
            'restricted_to_mods': group['postingRestrictedToMods'],
            'ap_inbox_url': group['inbox'],
            'ap_moderators_url': group['moderators'],
            'public_key': group['publicKey'].get('publicKeyPem') if group['publicKey'] else None,
            'ap_domain': domain_from_url(group['id']),
            'ap_fetched_at': utcnow(),
            'local': False,
        }
        return self.storage.upsert(self.kind, form)

    def to_wire(self, community: Community) -> ObjectJson:
        actor_id = community.ap_id or self.local_url(f'c/{community.name}')
        wire = {
            '@context': AP_CONTEXT,
            'id': actor_id,
            'type': 'Group',
            'preferredUsername': community.name,
            'name': community.title,
            'summary': community.description_html,
            'sensitive': community.nsfw,
            'postingRestrictedToMods': community.restricted_to_mods,
            'inbox': community.ap_inbox_url or f'{actor_id}/inbox',
            'moderators': community.ap_moderators_url or f'{actor_id}/moderators',
            'published': ap_datetime(community.created_at),
        }
        if community.public_key:
            wire['publicKey'] = {'id': f'{actor_id}#main-key', 'owner': actor_id,
                                 'publicKeyPem': community.public_key}
        source = ExactSource(community.description) if community.local and community.description else DerivedOnly()
        return source_to_wire(source, wire)
