from dateutil.parser import ParserError
from marshmallow import Schema, fields, validate, ValidationError, INCLUDE

from threadfed.activitypub.exceptions import ValidationFailure
from threadfed.activitypub.types import object_id
from threadfed.constants import COMMENT_TYPES, POST_TYPES, PERSON_TYPES, COMMUNITY_TYPES, TOMBSTONE_TYPE
from threadfed.utils import parse_ap_datetime


def validate_ap_url(text):
    if not isinstance(text, str) or not text.startswith(('https://', 'http://')):
        raise ValidationError(f"Not a url: {text!r}")


def validate_ap_datetime(text):
    try:
        parse_ap_datetime(text)
    except (ParserError, ValueError, OverflowError):
        raise ValidationError(f"Bad datetime string: {text}")


class ObjectReference(fields.Field):
    """A url, an embedded object with an id, or a list of those. Loads as the url of the first one."""

    def _deserialize(self, value, attr, data, **kwargs):
        url = object_id(value)
        if url is None:
            raise ValidationError('Not a reference to an object')
        validate_ap_url(url)
        return url


class ApSchema(Schema):
    """Fields that aren't declared are kept, they are sent back out as-is."""

    class Meta:
        unknown = INCLUDE

    id = fields.String(required=True, validate=validate_ap_url)
    type = fields.String(required=True)


class NoteSchema(ApSchema):
    type = fields.String(required=True, validate=validate.OneOf(COMMENT_TYPES))
    attributedTo = ObjectReference(required=True)
    inReplyTo = ObjectReference(required=True)
    content = fields.String(allow_none=True, load_default=None)
    mediaType = fields.String(allow_none=True, load_default=None)
    source = fields.Raw(allow_none=True, load_default=None)
    to = fields.Raw(load_default=None)
    cc = fields.Raw(load_default=None)
    audience = ObjectReference(allow_none=True, load_default=None)
    published = fields.String(allow_none=True, load_default=None, validate=validate_ap_datetime)
    updated = fields.String(allow_none=True, load_default=None, validate=validate_ap_datetime)


class PageSchema(ApSchema):
    type = fields.String(required=True, validate=validate.OneOf(POST_TYPES))
    attributedTo = ObjectReference(required=True)
    name = fields.String(allow_none=True, load_default=None)
    content = fields.String(allow_none=True, load_default=None)
    mediaType = fields.String(allow_none=True, load_default=None)
    source = fields.Raw(allow_none=True, load_default=None)
    to = fields.Raw(load_default=None)
    cc = fields.Raw(load_default=None)
    audience = ObjectReference(allow_none=True, load_default=None)
    attachment = fields.Raw(load_default=None)
    commentsEnabled = fields.Boolean(load_default=True)
    sensitive = fields.Boolean(load_default=False)
    published = fields.String(allow_none=True, load_default=None, validate=validate_ap_datetime)
    updated = fields.String(allow_none=True, load_default=None, validate=validate_ap_datetime)


class PersonSchema(ApSchema):
    type = fields.String(required=True, validate=validate.OneOf(PERSON_TYPES))
    preferredUsername = fields.String(required=True)
    name = fields.String(allow_none=True, load_default=None)
    summary = fields.String(allow_none=True, load_default=None)
    source = fields.Raw(allow_none=True, load_default=None)
    inbox = fields.String(allow_none=True, load_default=None)
    publicKey = fields.Dict(allow_none=True, load_default=None)


class GroupSchema(ApSchema):
    type = fields.String(required=True, validate=validate.OneOf(COMMUNITY_TYPES))
    preferredUsername = fields.String(required=True)
    name = fields.String(allow_none=True, load_default=None)
    summary = fields.String(allow_none=True, load_default=None)
    source = fields.Raw(allow_none=True, load_default=None)
    inbox = fields.String(allow_none=True, load_default=None)
    moderators = fields.String(allow_none=True, load_default=None)
    publicKey = fields.Dict(allow_none=True, load_default=None)
    postingRestrictedToMods = fields.Boolean(load_default=False)
    sensitive = fields.Boolean(load_default=False)


class TombstoneSchema(ApSchema):
    type = fields.String(required=True, validate=validate.Equal(TOMBSTONE_TYPE))
    formerType = fields.String(allow_none=True, load_default=None)
    deleted = fields.String(allow_none=True, load_default=None, validate=validate_ap_datetime)


def load_object(schema: Schema, data) -> dict:
    """Validate an incoming object, turning marshmallow's errors into ValidationFailure"""
    if not isinstance(data, dict):
        raise ValidationFailure('Object is not a JSON object')
    try:
        return schema.load(data)
    except ValidationError as e:
        raise ValidationFailure(f"Invalid {data.get('type', 'object')}: {e.messages}") from e


def extension_fields(schema: Schema, loaded: dict) -> dict:
    """Keys of an object that the schema doesn't declare"""
    return {key: value for key, value in loaded.items()
            if key not in schema.fields and key != '@context'}


note_schema = NoteSchema()
page_schema = PageSchema()
person_schema = PersonSchema()
group_schema = GroupSchema()
tombstone_schema = TombstoneSchema()
