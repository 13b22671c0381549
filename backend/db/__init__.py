# Database utilities package
from .engine import get_engine, dispose_engines
from .documents import documents, create_tables
