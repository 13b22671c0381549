"""
Document store - find/count primitives over JSON document collections.

The query engine only talks to the abstract Collection interface:

    collection.find(filter, projection, sort, populate, skip, limit) -> [doc]
    collection.count(filter) -> int

SqlDocumentStore is the bundled backend: documents live as JSON rows in one
SQLAlchemy table, filters are evaluated in-process by db.matcher.

Every driver or query failure surfaces as StoreError, including populate
paths that are not declared relations.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from db.documents import create_tables, documents
from db.matcher import (
    MISSING,
    FilterError,
    get_value,
    matches,
    project,
    set_value,
    sort_documents,
)
from models.resource import MODELS, ResourceModel
from services.query.descriptor import PopulateDirective, Projection, SortField

logger = logging.getLogger('db.store')


class StoreError(Exception):
    """Raised when the document store rejects or fails a query."""

    def __init__(self, message: str, collection: str = None):
        super().__init__(message)
        self.collection = collection


class Collection(ABC):
    """Read handle for one document collection."""

    @abstractmethod
    def find(
        self,
        filter: Dict[str, Any],
        projection: Projection,
        sort: Sequence[SortField],
        populate: Sequence[PopulateDirective],
        skip: int,
        limit: int,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def count(self, filter: Dict[str, Any]) -> int:
        ...


class DocumentStore(ABC):

    @abstractmethod
    def collection(self, model: ResourceModel) -> Collection:
        ...


class SqlDocumentStore(DocumentStore):
    """
    JSON documents in a SQLAlchemy table.

    Args:
        engine: SQLAlchemy engine (see db.engine.get_engine)
        models: model name -> ResourceModel, used to resolve populate targets
    """

    def __init__(self, engine: Engine, models: Optional[Mapping[str, ResourceModel]] = None):
        self.engine = engine
        self.models = models if models is not None else MODELS

    def create_all(self) -> None:
        create_tables(self.engine)

    def collection(self, model: ResourceModel) -> "SqlCollection":
        return SqlCollection(self, model)

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one document, assigning a string _id when absent."""
        body = dict(document)
        body['_id'] = str(body.get('_id') or uuid.uuid4().hex)
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(documents).values(
                    collection=collection,
                    doc_id=body['_id'],
                    body=body,
                ))
        except IntegrityError as e:
            raise StoreError(f"duplicate _id {body['_id']!r}", collection=collection) from e
        except SQLAlchemyError as e:
            raise StoreError(f"insert failed: {e}", collection=collection) from e
        return body

    def insert_many(self, collection: str, docs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.insert(collection, doc) for doc in docs]

    def load(self, collection: str, ids: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """All documents of a collection in natural order, optionally by _id."""
        stmt = select(documents.c.body).where(documents.c.collection == collection)
        if ids is not None:
            stmt = stmt.where(documents.c.doc_id.in_(list(ids)))
        stmt = stmt.order_by(documents.c.seq)
        try:
            with self.engine.connect() as conn:
                return [row.body for row in conn.execute(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"read failed: {e}", collection=collection) from e

    def count_all(self, collection: str) -> int:
        stmt = select(func.count()).select_from(documents).where(documents.c.collection == collection)
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"count failed: {e}", collection=collection) from e


class SqlCollection(Collection):

    def __init__(self, store: SqlDocumentStore, model: ResourceModel):
        self.store = store
        self.model = model

    @property
    def name(self) -> str:
        return self.model.collection

    def find(self, filter, projection, sort, populate, skip, limit):
        if limit == 0:
            # Zero means zero documents, never "no cap"
            self._check_populate(populate)
            return []
        docs = self._matching(filter)
        docs = sort_documents(docs, [(s.field, s.direction) for s in sort])
        docs = docs[skip:skip + limit]
        docs = [project(doc, projection.include, projection.exclude) for doc in docs]
        for directive in populate:
            self._populate(docs, directive)
        return docs

    def count(self, filter):
        if not filter:
            return self.store.count_all(self.name)
        return len(self._matching(filter))

    def _matching(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        docs = self.store.load(self.name)
        if not filter:
            return docs
        try:
            return [doc for doc in docs if matches(doc, filter)]
        except FilterError as e:
            raise StoreError(f"invalid filter: {e}", collection=self.name) from e
        except RecursionError as e:
            raise StoreError("filter is nested too deeply", collection=self.name) from e

    def _target(self, path: str) -> ResourceModel:
        target_name = self.model.relations.get(path)
        if target_name is None:
            raise StoreError(
                f"cannot populate '{path}': not a relation of {self.model.name}",
                collection=self.name,
            )
        target = self.store.models.get(target_name)
        if target is None:
            raise StoreError(
                f"cannot populate '{path}': unknown model {target_name}",
                collection=self.name,
            )
        return target

    def _check_populate(self, populate: Sequence[PopulateDirective]) -> None:
        for directive in populate:
            self._target(directive.path)

    def _populate(self, docs: List[Dict[str, Any]], directive: PopulateDirective) -> None:
        target = self._target(directive.path)

        refs = set()
        for doc in docs:
            value = get_value(doc, directive.path)
            if value is MISSING or value is None:
                continue
            for ref in (value if isinstance(value, list) else [value]):
                refs.add(_ref_id(ref))
        if not refs:
            return

        related = {}
        for body in self.store.load(target.collection, ids=sorted(refs)):
            try:
                if directive.match and not matches(body, directive.match):
                    continue
            except FilterError as e:
                raise StoreError(f"invalid populate match: {e}", collection=target.collection) from e
            except RecursionError as e:
                raise StoreError("populate match is nested too deeply", collection=target.collection) from e
            related[body['_id']] = project(body, directive.select.include, directive.select.exclude)

        for doc in docs:
            value = get_value(doc, directive.path)
            if value is MISSING or value is None:
                continue
            if isinstance(value, list):
                resolved = [related[_ref_id(ref)] for ref in value if _ref_id(ref) in related]
            else:
                resolved = related.get(_ref_id(value))
            set_value(doc, directive.path, resolved)

        logger.debug(
            "populate path=%s target=%s refs=%d resolved=%d",
            directive.path, target.collection, len(refs), len(related),
        )


def _ref_id(ref: Any) -> str:
    if isinstance(ref, dict):
        return str(ref.get('_id'))
    return str(ref)
