import pytest

from threadfed.activitypub.exceptions import ValidationFailure
from threadfed.activitypub.schema import note_schema, load_object, extension_fields, tombstone_schema
from threadfed.activitypub.types import object_id, source_from_json, ExactSource, DerivedOnly


def minimal_note(**kwargs):
    note = {'id': 'https://a.example/comment/1', 'type': 'Note', 'attributedTo': 'https://a.example/u/x',
            'inReplyTo': 'https://a.example/post/1'}
    note.update(kwargs)
    return note


def test_minimal_note():
    loaded = load_object(note_schema, minimal_note())
    assert loaded['content'] is None
    assert loaded['published'] is None


def test_unknown_fields_are_kept():
    loaded = load_object(note_schema, minimal_note(**{'@context': 'x', 'distinguished': True, 'language': {}}))
    assert extension_fields(note_schema, loaded) == {'distinguished': True, 'language': {}}


@pytest.mark.parametrize('bad', [
    {'id': 'not a url'},
    {'type': 'Person'},
    {'attributedTo': None},
    {'attributedTo': {'type': 'Person'}},
    {'inReplyTo': 'ftp://a.example/post/1'},
    {'published': 'last tuesday'},
])
def test_invalid_notes(bad):
    with pytest.raises(ValidationFailure):
        load_object(note_schema, minimal_note(**bad))


def test_not_an_object():
    with pytest.raises(ValidationFailure):
        load_object(note_schema, ['https://a.example/comment/1'])


def test_tombstone():
    loaded = load_object(tombstone_schema, {'id': 'https://a.example/comment/1', 'type': 'Tombstone'})
    assert loaded['formerType'] is None


def test_object_id():
    assert object_id('https://a.example/1') == 'https://a.example/1'
    assert object_id({'id': 'https://a.example/1'}) == 'https://a.example/1'
    assert object_id([{'id': 'https://a.example/1'}, 'https://a.example/2']) == 'https://a.example/1'
    assert object_id([]) is None
    assert object_id('') is None
    assert object_id(42) is None


def test_source_from_json():
    assert source_from_json({'content': 'x', 'mediaType': 'text/markdown'}) == ExactSource('x')
    assert source_from_json({'content': 'x', 'mediaType': 'text/plain'}) == \
        DerivedOnly({'content': 'x', 'mediaType': 'text/plain'})
    assert source_from_json(None) == DerivedOnly()
    assert ExactSource('x').to_json() == {'content': 'x', 'mediaType': 'text/markdown'}
    assert DerivedOnly().to_json() is None
