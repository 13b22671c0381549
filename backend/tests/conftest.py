"""
Root pytest configuration for backend tests.

Provides:
- Shared model descriptions (Person -> cats -> Cat)
- store: SqlDocumentStore on a fresh in-memory SQLite database
- app / client: Flask test application wired to that store
"""

import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from db.store import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest


@pytest.fixture
def cat_model():
    from models.resource import ResourceModel

    return ResourceModel(
        name='Cat',
        collection='cats',
        validation_schema={
            'name': {'type': 'string'},
            'age': {'type': 'integer'},
        },
    )


@pytest.fixture
def person_model():
    from models.resource import ResourceModel

    return ResourceModel(
        name='Person',
        collection='persons',
        relations={'cats': 'Cat', 'best_friend': 'Person'},
        validation_schema={
            'name': {'type': 'string'},
            'cats': {'type': 'array', 'items': {'type': 'string'}},
        },
        tags=['persons'],
    )


@pytest.fixture
def models(cat_model, person_model):
    return {m.name: m for m in (cat_model, person_model)}


@pytest.fixture
def store(models):
    """Document store on an isolated in-memory database."""
    from db.engine import dispose_engines, get_engine
    from db.store import SqlDocumentStore

    store = SqlDocumentStore(get_engine('sqlite://', warmup=False), models=models)
    store.create_all()
    yield store
    dispose_engines()


@pytest.fixture
def app(store, models):
    """Create test Flask application."""
    from app import create_app
    from config import TestingConfig

    app = create_app(TestingConfig, models=models.values(), store=store)
    app.config['TESTING'] = True
    yield app
    app.extensions['query_executor'].shutdown()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
