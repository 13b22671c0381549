"""
Documents table - schema-flexible JSON rows grouped by collection.

seq is the natural (insertion) order and the tie-breaker for every sort.
"""

from sqlalchemy import JSON, Column, Index, Integer, MetaData, String, Table

metadata = MetaData()

documents = Table(
    'documents',
    metadata,
    Column('seq', Integer, primary_key=True, autoincrement=True),
    Column('collection', String(255), nullable=False),
    Column('doc_id', String(64), nullable=False),
    Column('body', JSON, nullable=False),
    Index('ix_documents_collection_doc_id', 'collection', 'doc_id', unique=True),
)


def create_tables(engine) -> None:
    metadata.create_all(engine)
