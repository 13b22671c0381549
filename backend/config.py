import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('true', '1', 'yes', 'on')


def get_database_url() -> str:
    """
    Get DATABASE_URL for the document store.

    Any SQLAlchemy URL works (documents are stored as JSON rows).
    Render/Heroku style postgres:// is rewritten to postgresql://.
    """
    database_url = os.getenv('DATABASE_URL', 'sqlite:///documents.db')

    # SQLAlchemy requires postgresql://
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)

    return database_url


class Config:
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    TESTING = False

    DATABASE_URL = get_database_url()

    # Connection pool settings (ignored for in-memory SQLite)
    DATABASE_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    API_PREFIX = os.getenv('API_PREFIX', '/api')

    # Optional JSON file with resource model descriptions
    MODELS_FILE = os.getenv('MODELS_FILE')

    # Store-wide default cap applied when no limit/pageSize is sent
    DEFAULT_PAGE_LIMIT = int(os.getenv('DEFAULT_PAGE_LIMIT', '100'))

    # Run find and count on a thread pool instead of one after the other
    COUNT_CONCURRENTLY = _env_bool('COUNT_CONCURRENTLY', 'true')
    QUERY_WORKERS = int(os.getenv('QUERY_WORKERS', '4'))

    # Compute X-Total-Count whenever skip/limit/page/pageSize is sent
    COUNT_WHEN_PAGINATED = _env_bool('COUNT_WHEN_PAGINATED', 'false')


class TestingConfig(Config):
    TESTING = True
    DATABASE_URL = 'sqlite://'
    DATABASE_ENGINE_OPTIONS = {}
    MODELS_FILE = None
    DEFAULT_PAGE_LIMIT = 100
    COUNT_CONCURRENTLY = True
    COUNT_WHEN_PAGINATED = False
