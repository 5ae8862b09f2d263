from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from threadfed import db
from threadfed.activitypub.types import ObjectKind
from threadfed.models import User, Community, Post, PostReply
from threadfed.utils import utcnow

KIND_MODELS = {
    ObjectKind.PERSON: User,
    ObjectKind.COMMUNITY: Community,
    ObjectKind.POST: Post,
    ObjectKind.COMMENT: PostReply,
}

# never overwritten when an existing row is upserted
INSERT_ONLY_COLUMNS = {'ap_id', 'created_at', 'local', 'deleted', 'deleted_at', 'removed', 'read', 'banned'}


class Storage:
    """
    Database access for the resolver and converters, over the Flask-SQLAlchemy session.

    Writes are flushed, not committed. The caller that started the work commits once at the end or rolls back
    everything.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @staticmethod
    def model_for(kind: ObjectKind):
        try:
            return KIND_MODELS[kind]
        except KeyError:
            raise ValueError(f'No table for {kind}')

    def read(self, kind: ObjectKind, id: int):
        return self.session.get(self.model_for(kind), id)

    def read_by_ap_id(self, kind: ObjectKind, ap_id: str):
        if kind is ObjectKind.POST_OR_COMMENT:
            return self.read_by_ap_id(ObjectKind.POST, ap_id) or self.read_by_ap_id(ObjectKind.COMMENT, ap_id)
        model = self.model_for(kind)
        return self.session.query(model).filter(model.ap_id == ap_id).first()

    def upsert(self, kind: ObjectKind, form: dict[str, Any]):
        """
        Insert the row for form['ap_id'], or overwrite the mutable columns of the existing one.

        Done as a single INSERT ... ON CONFLICT (ap_id) DO UPDATE where the database supports it, so two deliveries
        of the same object racing each other still end up as one row.
        """
        model = self.model_for(kind)
        if not form.get('ap_id'):
            raise ValueError('Upsert needs an ap_id')
        dialect = self.session.get_bind(mapper=model.__mapper__).dialect.name
        if dialect == 'postgresql':
            insert = pg_insert
        elif dialect == 'sqlite':
            insert = sqlite_insert
        else:
            return self._upsert_by_select(model, form)

        stmt = insert(model).values(**form)
        changes = {key: stmt.excluded[key] for key in form if key not in INSERT_ONLY_COLUMNS}
        changes['updated_at'] = utcnow()
        stmt = stmt.on_conflict_do_update(index_elements=[model.ap_id], set_=changes).returning(model.id)
        row_id = self.session.execute(stmt).scalar_one()
        return self.session.get(model, row_id, populate_existing=True)

    def _upsert_by_select(self, model, form: dict[str, Any]):
        existing = self.session.query(model).filter(model.ap_id == form['ap_id']).first()
        if existing is None:
            existing = model(**form)
            self.session.add(existing)
        else:
            for key, value in form.items():
                if key not in INSERT_ONLY_COLUMNS:
                    setattr(existing, key, value)
        self.session.flush()
        return existing

    def mark_deleted(self, kind: ObjectKind, id: int):
        row = self.read(kind, id)
        if row is not None:
            row.soft_delete()
            self.session.flush()
        return row

    def delete(self, kind: ObjectKind, id: int) -> None:
        """Remove the row itself. Federation only ever uses mark_deleted, this is for maintenance."""
        row = self.read(kind, id)
        if row is not None:
            self.session.delete(row)
            self.session.flush()

    def is_moderator(self, community: Community, user: User) -> bool:
        return community.is_moderator(user)

    def is_banned(self, community: Community, user: User) -> bool:
        return community.is_banned(user)

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
