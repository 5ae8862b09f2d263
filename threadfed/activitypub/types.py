"""Type definitions shared by the resolver and the object converters"""
from __future__ import annotations
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Protocol

from threadfed.activitypub.exceptions import ResolutionBudgetExhausted, ValidationFailure
from threadfed.constants import MEDIA_TYPE_MARKDOWN, POST_TYPES, COMMENT_TYPES

type ObjectJson = Dict[str, Any]


class ObjectKind(Enum):
    """What a remote reference is expected to resolve to"""
    PERSON = "person"
    COMMUNITY = "community"
    POST = "post"
    COMMENT = "comment"
    POST_OR_COMMENT = "post_or_comment"    # inReplyTo can point at either

    def narrow(self, object_type: str | None) -> ObjectKind:
        """Pick POST or COMMENT for a POST_OR_COMMENT reference, from the fetched object's 'type'"""
        if self is not ObjectKind.POST_OR_COMMENT:
            return self
        if object_type in POST_TYPES:
            return ObjectKind.POST
        if object_type in COMMENT_TYPES:
            return ObjectKind.COMMENT
        raise ValidationFailure(f'inReplyTo points at an object of type {object_type!r}')


class ResolutionBudget:
    """
    Number of remote fetches one incoming object may cause, counted across every nested lookup.

    One instance is created per incoming object and handed down through each dereference. spend() is checked and
    incremented under a lock, so it stays correct if independent lookups are ever done in parallel.
    """

    def __init__(self, ceiling: int):
        self.ceiling = ceiling
        self.count = 0
        self.fetched: list[str] = []
        self._lock = threading.Lock()

    def spend(self, url: str | None = None) -> None:
        with self._lock:
            if self.count >= self.ceiling:
                raise ResolutionBudgetExhausted(self.ceiling, url)
            self.count += 1
            if url:
                self.fetched.append(url)

    @property
    def remaining(self) -> int:
        return max(self.ceiling - self.count, 0)

    def __repr__(self) -> str:
        return f'<ResolutionBudget {self.count}/{self.ceiling}>'


@dataclass(frozen=True, slots=True)
class ExactSource:
    """Markdown body that can be sent on and read back without loss"""
    content: str
    media_type: str = MEDIA_TYPE_MARKDOWN

    def to_json(self) -> ObjectJson | None:
        return {'content': self.content, 'mediaType': self.media_type}


@dataclass(frozen=True, slots=True)
class DerivedOnly:
    """
    No usable Markdown, so the body has to be derived from the HTML 'content'.

    raw keeps whatever 'source' value the peer sent (if any) so it can be passed along untouched.
    """
    raw: Any = field(default=None)

    def to_json(self) -> Any:
        return self.raw


type Source = ExactSource | DerivedOnly


def source_from_json(source: Any) -> Source:
    if isinstance(source, dict) and source.get('mediaType') == MEDIA_TYPE_MARKDOWN \
            and isinstance(source.get('content'), str):
        return ExactSource(source['content'])
    return DerivedOnly(source)


def object_id(reference: Any) -> str | None:
    """The id of a reference that may be a url, an embedded object or a list of either"""
    if isinstance(reference, list):
        reference = reference[0] if reference else None
    if isinstance(reference, dict):
        reference = reference.get('id')
    if isinstance(reference, str) and reference:
        return reference
    return None


class Transport(Protocol):
    def fetch_and_verify(self, kind: ObjectKind, url: str) -> ObjectJson: ...
