"""
Resource API Routes - read endpoints generated from model descriptions

Endpoints (per registered model):
- GET  <base_path>          - List documents (params in the query string)
- POST <base_path>/search   - Search documents (params in the JSON body)

Discovery:
- GET /_routes              - Describe every mounted route

Both data endpoints return the resource array as the body. When a total
count was requested it travels in the X-Total-Count header.
"""

from typing import Any, Dict, Iterable, List

from flask import Blueprint, current_app, jsonify, request

from models.resource import ResourceModel
from services.query.descriptor import ResultEnvelope
from services.resource_service import ResourceService
from services.response_schema import create_response_schema, find_params_schema
from utils.normalize import MalformedParameter

TOTAL_COUNT_HEADER = 'X-Total-Count'


def make_resource_blueprint(model: ResourceModel, service: ResourceService) -> Blueprint:
    """Build the list/search blueprint for one model."""
    bp = Blueprint(f"resource_{model.name.lower()}", __name__)

    @bp.route(model.base_path, methods=["GET"])
    def list_resources():
        envelope = service.list(request.args.to_dict())
        return _envelope_response(envelope)

    @bp.route(f"{model.base_path}/search", methods=["POST"])
    def search_resources():
        body = None
        if request.data:
            try:
                body = request.get_json(force=True, silent=True)
            except RecursionError as e:
                raise MalformedParameter("Request body is nested too deeply", field='body') from e
            if body is None:
                raise MalformedParameter("Request body is not valid JSON", field='body')
        envelope = service.search(body)
        return _envelope_response(envelope)

    return bp


def _envelope_response(envelope: ResultEnvelope):
    response = jsonify(envelope.resources)
    if envelope.total_count is not None:
        response.headers[TOTAL_COUNT_HEADER] = str(envelope.total_count)
    return response


def describe_routes(models: Iterable[ResourceModel], prefix: str = '') -> List[Dict[str, Any]]:
    """Route definitions (method, url, summary, schema) for the given models."""
    params = find_params_schema()
    routes = []
    for model in models:
        response = create_response_schema(model.validation_schema, 'array')
        routes.append({
            'method': 'GET',
            'url': f"{prefix}{model.base_path}",
            'summary': f"List {model.name} resources",
            'tags': model.tags,
            'schema': {'querystring': params, 'response': response},
        })
        routes.append({
            'method': 'POST',
            'url': f"{prefix}{model.base_path}/search",
            'summary': f"Search through {model.name} resources",
            'tags': model.tags,
            'schema': {'body': params, 'response': response},
        })
    return routes


def make_discovery_blueprint(models: Iterable[ResourceModel]) -> Blueprint:
    bp = Blueprint('resource_routes', __name__)
    models = list(models)

    @bp.route("/_routes", methods=["GET"])
    def list_routes():
        prefix = current_app.config.get('API_PREFIX', '')
        # JSON object keys must be strings
        routes = describe_routes(models, prefix)
        for route in routes:
            route['schema']['response'] = {
                str(code): schema for code, schema in route['schema']['response'].items()
            }
        return jsonify({'routes': routes})

    return bp
