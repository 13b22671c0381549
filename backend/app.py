"""
Flask API Application - read endpoints over document collections

Every registered ResourceModel gets:
- GET  /api/<collection>          list (query string params)
- POST /api/<collection>/search   search (JSON body params)

Both share one normalize -> paginate -> execute pipeline.
"""

import logging
from typing import Iterable, Optional

from flask import Flask
from flask_cors import CORS

from config import Config
from db.engine import get_engine
from db.store import DocumentStore, SqlDocumentStore
from models.resource import MODELS, ResourceModel, load_models, register_model
from routes.resources import make_discovery_blueprint, make_resource_blueprint
from services.query.executor import QueryExecutor
from services.query.pagination import PaginationConfig
from services.resource_service import ResourceService

logger = logging.getLogger('app')


def create_app(
    config_object=Config,
    *,
    models: Optional[Iterable[ResourceModel]] = None,
    store: Optional[DocumentStore] = None,
):
    """
    Build the Flask app.

    Args:
        config_object: Config class (see config.py)
        models: Model descriptions to mount; defaults to MODELS_FILE + the registry
        store: Document store; defaults to SqlDocumentStore on DATABASE_URL
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "X-Request-ID"],
         expose_headers=["X-Request-ID", "X-Total-Count"],
         supports_credentials=False,
         send_wildcard=True)

    # === MIDDLEWARE ===
    from api.middleware import (
        setup_error_handlers,
        setup_request_id_middleware,
        setup_request_logging_middleware,
    )
    setup_request_id_middleware(app)
    setup_request_logging_middleware(app)
    setup_error_handlers(app)

    # === MODELS ===
    if models is None:
        if app.config.get('MODELS_FILE'):
            for model in load_models(app.config['MODELS_FILE']):
                register_model(model)
        models = list(MODELS.values())
    else:
        models = list(models)

    # === STORE ===
    if store is None:
        engine = get_engine(app.config['DATABASE_URL'])
        store = SqlDocumentStore(engine, models={m.name: m for m in models})
        store.create_all()
    app.extensions['document_store'] = store

    # === QUERY ENGINE ===
    pagination = PaginationConfig(default_limit=app.config['DEFAULT_PAGE_LIMIT'])
    executor = QueryExecutor(
        concurrent=app.config['COUNT_CONCURRENTLY'],
        max_workers=app.config['QUERY_WORKERS'],
    )
    app.extensions['query_executor'] = executor

    prefix = app.config.get('API_PREFIX', '/api')
    for model in models:
        service = ResourceService(
            model,
            store,
            pagination=pagination,
            executor=executor,
            count_when_paginated=app.config['COUNT_WHEN_PAGINATED'],
        )
        app.register_blueprint(make_resource_blueprint(model, service), url_prefix=prefix)
        logger.info("resource_mounted model=%s path=%s%s", model.name, prefix, model.base_path)

    app.register_blueprint(make_discovery_blueprint(models), url_prefix=prefix)

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=Config.DEBUG)
