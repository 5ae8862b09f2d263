from __future__ import annotations

from threadfed.activitypub.exceptions import ValidationFailure
from threadfed.activitypub.objects import ApObjectConverter, source_to_wire
from threadfed.activitypub.schema import page_schema, tombstone_schema, load_object
from threadfed.activitypub.trust import verify_person_in_community
from threadfed.activitypub.types import ObjectKind, ObjectJson, ResolutionBudget, ExactSource, DerivedOnly
from threadfed.constants import AP_PUBLIC, AP_CONTEXT, MEDIA_TYPE_HTML, TOMBSTONE_TYPE
from threadfed.models import Post
from threadfed.utils import markdown_to_html, domain_from_url, utcnow, ap_datetime, parse_ap_datetime, \
    remove_slurs


def find_community_reference(page: dict) -> str | None:
    """'audience' if the sender set it, otherwise the first addressee that isn't the public or a followers
    collection"""
    if page.get('audience'):
        return page['audience']
    for location in ('to', 'cc'):
        addressees = page.get(location)
        if isinstance(addressees, str):
            addressees = [addressees]
        if not isinstance(addressees, list):
            continue
        for addressee in addressees:
            if isinstance(addressee, str) and addressee != AP_PUBLIC \
                    and not addressee.startswith('https://www.w3.org') and not addressee.endswith('/followers'):
                return addressee
    return None


def link_from_attachment(attachment) -> str | None:
    if isinstance(attachment, dict):
        attachment = [attachment]
    if isinstance(attachment, list) and attachment and isinstance(attachment[0], dict):
        if attachment[0].get('type') == 'Link':
            return attachment[0].get('href') or attachment[0].get('url')   # 'url' is what NodeBB sends
    return None


class PostConverter(ApObjectConverter):
    kind = ObjectKind.POST
    schema = page_schema

    def from_wire(self, object_json: ObjectJson, expected_domain: str, budget: ResolutionBudget) -> Post | None:
        if object_json.get('type') == TOMBSTONE_TYPE:
            tombstone = load_object(tombstone_schema, object_json)
            self.check_domain(tombstone['id'], expected_domain)
            existing = self.read_from_ap_id(tombstone['id'])
            if existing is not None:
                self.storage.mark_deleted(self.kind, existing.id)
            return existing

        page = self.load(object_json)
        self.check_domain(page['id'], expected_domain)
        self.check_attribution(page['id'], page['attributedTo'])

        author = self.resolver.dereference(ObjectKind.PERSON, page['attributedTo'], budget)
        community_ref = find_community_reference(page)
        if community_ref is None:
            raise ValidationFailure(f"{page['id']} is not addressed to a community")
        community = self.resolver.dereference(ObjectKind.COMMUNITY, community_ref, budget)
        verify_person_in_community(author, community, self.storage)

        body, source = self.body_from_object(page)
        title = page['name']
        if not title and body.strip():
            title = body.strip().splitlines()[0][:200]     # microblog posts have no title
        if not title:
            raise ValidationFailure(f"{page['id']} has neither a title nor any content")
        form = {
            'ap_id': page['id'],
            'title': remove_slurs(title, self.config.get('SLUR_FILTER_REGEX'))[:255],
            'body': body,
            'body_html': markdown_to_html(body),
            'url': link_from_attachment(page['attachment']),
            'user_id': author.id,
            'community_id': community.id,
            'comments_enabled': page['commentsEnabled'],
            'nsfw': page['sensitive'] or community.nsfw,
            'posted_at': parse_ap_datetime(page['published']) or utcnow(),
            'edited_at': parse_ap_datetime(page['updated']),
            'ap_domain': domain_from_url(page['id']),
            'ap_fetched_at': utcnow(),
            'local': False,
        }
        return self.storage.upsert(self.kind, form)

    def to_wire(self, post: Post) -> ObjectJson:
        author = self.storage.read(ObjectKind.PERSON, post.user_id)
        community = self.storage.read(ObjectKind.COMMUNITY, post.community_id)
        wire = {
            '@context': AP_CONTEXT,
            'id': post.ap_id or self.local_url(f'post/{post.id}'),
            'type': 'Page',
            'attributedTo': author.ap_id,
            'to': [community.ap_id, AP_PUBLIC],
            'audience': community.ap_id,
            'name': post.title,
            'content': markdown_to_html(post.body),
            'mediaType': MEDIA_TYPE_HTML,
            'commentsEnabled': post.comments_enabled,
            'sensitive': post.nsfw,
            'published': ap_datetime(post.posted_at),
        }
        if post.url:
            wire['attachment'] = [{'type': 'Link', 'href': post.url}]
        if post.edited_at:
            wire['updated'] = ap_datetime(post.edited_at)
        source = ExactSource(post.body) if post.local and post.body else DerivedOnly()
        return source_to_wire(source, wire)
