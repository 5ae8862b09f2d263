from __future__ import annotations

from threadfed.activitypub.objects import ApObjectConverter, source_to_wire
from threadfed.activitypub.schema import person_schema
from threadfed.activitypub.types import ObjectKind, ObjectJson, ResolutionBudget, ExactSource, DerivedOnly
from threadfed.constants import AP_CONTEXT
from threadfed.models import User
from threadfed.utils import markdown_to_html, domain_from_url, utcnow, ap_datetime


class PersonConverter(ApObjectConverter):
    kind = ObjectKind.PERSON
    schema = person_schema

    def from_wire(self, object_json: ObjectJson, expected_domain: str, budget: ResolutionBudget) -> User:
        person = self.load(object_json)
        self.check_domain(person['id'], expected_domain)

        about, _ = self.body_from_object(person, html_field='summary')
        public_key = person['publicKey'].get('publicKeyPem') if person['publicKey'] else None
        form = {
            'ap_id': person['id'],
            'user_name': person['preferredUsername'][:255],
            'title': person['name'][:255] if person['name'] else None,
            'about': about,
            'about_html': markdown_to_html(about),
            'bot': person['type'] == 'Service',
            'ap_inbox_url': person['inbox'],
            'public_key': public_key,
            'ap_domain': domain_from_url(person['id']),
            'ap_fetched_at': utcnow(),
            'local': False,
        }
        return self.storage.upsert(self.kind, form)

    def to_wire(self, user: User) -> ObjectJson:
        actor_id = user.ap_id or self.local_url(f'u/{user.user_name}')
        wire = {
            '@context': AP_CONTEXT,
            'id': actor_id,
            'type': 'Service' if user.bot else 'Person',
            'preferredUsername': user.user_name,
            'name': user.title,
            'summary': user.about_html,
            'inbox': user.ap_inbox_url or f'{actor_id}/inbox',
            'published': ap_datetime(user.created_at),
        }
        if user.public_key:
            wire['publicKey'] = {'id': f'{actor_id}#main-key', 'owner': actor_id, 'publicKeyPem': user.public_key}
        source = ExactSource(user.about) if user.local and user.about else DerivedOnly()
        return source_to_wire(source, wire)
