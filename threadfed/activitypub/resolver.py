"""Turning references to remote objects into local rows, fetching whatever isn't known yet"""
from __future__ import annotations

from typing import Any, TYPE_CHECKING

from flask import current_app

from threadfed.activitypub.exceptions import ValidationFailure
from threadfed.activitypub.types import ObjectKind, ResolutionBudget, Transport, object_id

if TYPE_CHECKING:
    from threadfed.activitypub.objects import ApObjectConverter
    from threadfed.activitypub.storage import Storage


class RemoteObjectResolver:
    """
    dereference() returns the local row for a reference. Rows we already have cost nothing. Anything else costs one
    unit of the budget, is fetched through the transport and handed to the converter for its kind, which may in turn
    dereference the object's own references with the same budget.

    Each materialized row is flushed before returning, so a later reference to the same id within the same incoming
    object finds it locally. There is no separate visited set: a chain of references that never reaches a known row
    keeps spending until the budget runs out.
    """

    def __init__(self, storage: Storage, transport: Transport):
        self.storage = storage
        self.transport = transport
        self.converters: dict[ObjectKind, ApObjectConverter] = {}

    def register(self, kind: ObjectKind, converter: ApObjectConverter) -> None:
        self.converters[kind] = converter

    def converter_for(self, kind: ObjectKind) -> ApObjectConverter:
        try:
            return self.converters[kind]
        except KeyError:
            raise ValueError(f'No converter registered for {kind}')

    def find_local(self, kind: ObjectKind, reference: Any):
        url = object_id(reference)
        if url is None:
            return None
        return self.storage.read_by_ap_id(kind, url)

    def dereference(self, kind: ObjectKind, reference: Any, budget: ResolutionBudget):
        """
        reference may be a url, an embedded object or a list of either. Embedded objects are only used for their id,
        the object itself is always fetched from its origin.
        """
        url = object_id(reference)
        if url is None:
            raise ValidationFailure(f'Missing or malformed reference to a {kind.value}: {reference!r}')

        local = self.storage.read_by_ap_id(kind, url)
        if local is not None:
            return local

        budget.spend(url)
        object_json = self.transport.fetch_and_verify(kind, url)
        concrete_kind = kind.narrow(object_json.get('type'))

        entity = self.converter_for(concrete_kind).from_wire(object_json, url, budget)
        if entity is None:
            raise ValidationFailure(f'{url} did not resolve to a {concrete_kind.value}')
        self.storage.flush()
        current_app.logger.debug(f'Resolved {concrete_kind.value} {url} ({budget})')
        return entity
