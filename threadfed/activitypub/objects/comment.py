from __future__ import annotations

from threadfed.activitypub.exceptions import ThreadClosed
from threadfed.activitypub.objects import ApObjectConverter, source_to_wire
from threadfed.activitypub.schema import note_schema, tombstone_schema, load_object
from threadfed.activitypub.trust import verify_person_in_community
from threadfed.activitypub.types import ObjectKind, ObjectJson, ResolutionBudget, ExactSource, DerivedOnly
from threadfed.activitypub.util import log_incoming_ap
from threadfed.constants import AP_PUBLIC, MEDIA_TYPE_HTML, TOMBSTONE_TYPE, APLOG_CREATE, APLOG_DELETE, \
    APLOG_SUCCESS, APLOG_FAILURE, APLOG_IGNORED
from threadfed.models import Post, PostReply
from threadfed.utils import markdown_to_html, domain_from_url, utcnow, ap_datetime, parse_ap_datetime


class CommentConverter(ApObjectConverter):
    """
    Replies, exchanged as Notes.

    Incoming Notes pull in their author, the post and any parent comments they hang off, checking along the way
    that the author may post in the community and that the post isn't locked. Nothing is committed here apart from
    in receive(), which wraps a whole incoming object in one transaction.
    """
    kind = ObjectKind.COMMENT
    schema = note_schema

    def to_wire(self, reply: PostReply) -> ObjectJson:
        author = self.storage.read(ObjectKind.PERSON, reply.user_id)
        post = self.storage.read(ObjectKind.POST, reply.post_id)
        parent = self.storage.read(ObjectKind.COMMENT, reply.parent_id) if reply.parent_id else None
        community = self.storage.read(ObjectKind.COMMUNITY, post.community_id)

        # anything we didn't understand on the way in goes back out, underneath the fields we set
        wire = dict(reply.ap_extensions or {})
        wire.update({
            'id': reply.profile_id(),
            'type': 'Note',
            'attributedTo': author.ap_id,
            'to': [AP_PUBLIC],
            'cc': [community.ap_id],
            'audience': community.ap_id,
            'content': markdown_to_html(reply.body),
            'mediaType': MEDIA_TYPE_HTML,
            'inReplyTo': parent.ap_id if parent is not None else post.ap_id,
            'published': ap_datetime(reply.posted_at),
        })
        if reply.edited_at:
            wire['updated'] = ap_datetime(reply.edited_at)
        else:
            wire.pop('updated', None)

        if reply.local or reply.source_exact:
            source = ExactSource(reply.body)
        else:
            source = DerivedOnly(wire.get('source'))
        return source_to_wire(source, wire)

    def to_tombstone(self, reply: PostReply) -> ObjectJson:
        if not reply.is_gone:
            raise ValueError(f'{reply} is neither deleted nor removed')
        return {
            'id': reply.profile_id(),
            'type': TOMBSTONE_TYPE,
            'formerType': 'Note',
            'deleted': ap_datetime(reply.edited_at or reply.posted_at),
        }

    def serve(self, reply: PostReply) -> ObjectJson:
        """What to show a remote server asking for this reply"""
        if reply.is_gone:
            return self.to_tombstone(reply)
        return self.to_wire(reply)

    def get_parents(self, note: dict, budget: ResolutionBudget) -> tuple[Post, PostReply | None]:
        """The post a Note belongs to, and the comment it replies to if it isn't a top level reply"""
        target = self.resolver.dereference(ObjectKind.POST_OR_COMMENT, note['inReplyTo'], budget)
        if isinstance(target, PostReply):
            return self.storage.read(ObjectKind.POST, target.post_id), target
        return target, None

    def from_wire(self, object_json: ObjectJson, expected_domain: str,
                  budget: ResolutionBudget) -> PostReply | None:
        if isinstance(object_json, dict) and object_json.get('type') == TOMBSTONE_TYPE:
            return self._apply_tombstone(object_json, expected_domain)

        note = self.load(object_json)
        self.check_domain(note['id'], expected_domain)
        self.check_attribution(note['id'], note['attributedTo'])

        author = self.resolver.dereference(ObjectKind.PERSON, note['attributedTo'], budget)
        post, parent = self.get_parents(note, budget)
        community = self.storage.read(ObjectKind.COMMUNITY, post.community_id)
        verify_person_in_community(author, community, self.storage)
        if post.is_locked:
            raise ThreadClosed(f'{post.ap_id} is locked')

        body, source = self.body_from_object(note)
        extensions = self.extensions(note)
        if isinstance(source, DerivedOnly) and source.raw is not None:
            extensions['source'] = source.raw

        form = {
            'ap_id': note['id'],
            'user_id': author.id,
            'post_id': post.id,
            'parent_id': parent.id if parent is not None else None,
            'root_id': (parent.root_id or parent.id) if parent is not None else None,
            'depth': parent.depth + 1 if parent is not None else 0,
            'body': body,
            'body_html': markdown_to_html(body),
            'source_exact': isinstance(source, ExactSource),
            'posted_at': parse_ap_datetime(note['published']) or utcnow(),
            'edited_at': parse_ap_datetime(note['updated']),
            'ap_extensions': extensions or None,
            'ap_domain': domain_from_url(note['id']),
            'ap_fetched_at': utcnow(),
            'local': False,
        }
        return self.storage.upsert(self.kind, form)

    def _apply_tombstone(self, object_json: ObjectJson, expected_domain: str) -> PostReply | None:
        tombstone = load_object(tombstone_schema, object_json)
        self.check_domain(tombstone['id'], expected_domain)
        existing = self.read_from_ap_id(tombstone['id'])
        if existing is None:
            return None     # never had it, nothing to delete
        return self.storage.mark_deleted(self.kind, existing.id)

    def delete(self, reply: PostReply) -> None:
        self.storage.mark_deleted(self.kind, reply.id)

    def receive(self, object_json: ObjectJson, expected_domain: str) -> PostReply | None:
        """
        Process one incoming Note or Tombstone with a fresh fetch budget, then commit. Any failure rolls back every
        row written while resolving it and is re-raised.
        """
        budget = ResolutionBudget(self.config['HTTP_FETCH_LIMIT'])
        ap_id = object_json.get('id') if isinstance(object_json, dict) else None
        is_tombstone = isinstance(object_json, dict) and object_json.get('type') == TOMBSTONE_TYPE
        aplog_type = APLOG_DELETE if is_tombstone else APLOG_CREATE
        try:
            reply = self.from_wire(object_json, expected_domain, budget)
            self.storage.commit()
        except Exception as e:
            self.storage.rollback()
            log_incoming_ap(ap_id, aplog_type, APLOG_FAILURE, object_json, f'{type(e).__name__}: {e}')
            raise

        log_incoming_ap(ap_id, aplog_type, APLOG_SUCCESS if reply is not None else APLOG_IGNORED, object_json,
                        f'{budget.count} remote fetches')
        return reply
