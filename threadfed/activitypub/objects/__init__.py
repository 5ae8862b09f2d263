"""One converter per kind of object, between local rows and their ActivityPub JSON"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, TYPE_CHECKING

from marshmallow import Schema

from threadfed.activitypub.exceptions import ValidationFailure
from threadfed.activitypub.schema import load_object, extension_fields
from threadfed.activitypub.types import ObjectKind, ObjectJson, ResolutionBudget, Source, ExactSource, \
    DerivedOnly, source_from_json
from threadfed.constants import MEDIA_TYPE_MARKDOWN
from threadfed.utils import domain_from_url, html_to_markdown, remove_slurs

if TYPE_CHECKING:
    from threadfed.activitypub.resolver import RemoteObjectResolver
    from threadfed.activitypub.storage import Storage


class ApObjectConverter(ABC):
    kind: ObjectKind
    schema: Schema

    def __init__(self, storage: Storage, resolver: RemoteObjectResolver, config: Mapping[str, Any]):
        self.storage = storage
        self.resolver = resolver
        self.config = config

    def read_from_ap_id(self, ap_id: str):
        return self.storage.read_by_ap_id(self.kind, ap_id)

    @abstractmethod
    def from_wire(self, object_json: ObjectJson, expected_domain: str, budget: ResolutionBudget):
        """Validate object_json, resolve what it refers to and upsert the local row"""

    @abstractmethod
    def to_wire(self, entity) -> ObjectJson:
        """The ActivityPub representation of a local row"""

    def load(self, object_json: ObjectJson) -> dict:
        return load_object(self.schema, object_json)

    def extensions(self, loaded: dict) -> dict:
        return extension_fields(self.schema, loaded)

    @staticmethod
    def check_domain(object_id: str, expected_domain: str) -> None:
        """The object must live on the server we got it from"""
        if domain_from_url(object_id) != domain_from_url(expected_domain):
            raise ValidationFailure(f'{object_id} does not belong to {domain_from_url(expected_domain)}')

    @staticmethod
    def check_attribution(object_id: str, actor_id: str) -> None:
        """An object can only be attributed to an actor on its own server"""
        if domain_from_url(actor_id) != domain_from_url(object_id):
            raise ValidationFailure(f'{object_id} is attributed to {actor_id}, which lives on another server')

    def local_url(self, path: str) -> str:
        return f"{self.config['HTTP_PROTOCOL']}://{self.config['SERVER_NAME']}/{path}"

    def body_from_object(self, object_json: dict, html_field: str = 'content') -> tuple[str, Source]:
        """
        Markdown body of an incoming object, with slurs removed.

        A text/markdown source block is used as-is. Without one the HTML is converted to Markdown, which is lossy.
        """
        source = source_from_json(object_json.get('source'))
        if isinstance(source, ExactSource):
            body = source.content
        elif object_json.get('mediaType') == MEDIA_TYPE_MARKDOWN and object_json.get(html_field):
            source = ExactSource(object_json[html_field])
            body = source.content
        else:
            body = html_to_markdown(object_json.get(html_field) or '')
        return remove_slurs(body, self.config.get('SLUR_FILTER_REGEX')), source


def source_to_wire(source: Source, wire: dict) -> dict:
    """Set or leave out 'source' on an outgoing object depending on which kind of source we have"""
    value = source.to_json()
    if value is None:
        wire.pop('source', None)
    else:
        wire['source'] = value
    return wire


__all__ = ['ApObjectConverter', 'source_to_wire', 'ExactSource', 'DerivedOnly']
