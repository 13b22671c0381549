#!/usr/bin/env python3
"""
CLI for the document query API

Commands:
    seed    - Insert documents from a JSON file into a model's collection
    find    - Run a list query through the same pipeline as GET /api/<collection>

Usage:
    python cli.py --models models.json seed Person data/persons.json
    python cli.py --models models.json find Person --query '{"name": "asd"}' --sort -name
    python cli.py --models models.json find Person --populate cats --page 2 --page-size 5 --total-count
"""

import json
import sys

import click

from config import Config
from db.engine import get_engine
from db.store import SqlDocumentStore, StoreError
from models.resource import load_models
from services.query.pagination import PaginationConfig
from services.resource_service import ResourceService
from utils.normalize import MalformedParameter, validation_error_response


def _open_store(ctx) -> SqlDocumentStore:
    models = ctx.obj['models']
    store = SqlDocumentStore(get_engine(ctx.obj['database_url']), models=models)
    store.create_all()
    return store


def _model(ctx, name):
    model = ctx.obj['models'].get(name)
    if model is None:
        raise click.BadParameter(
            f"unknown model {name!r} (known: {', '.join(sorted(ctx.obj['models'])) or 'none'})",
            param_hint="MODEL",
        )
    return model


@click.group()
@click.version_option(version="1.0.0", prog_name="docquery-cli")
@click.option("--models", "models_file", type=click.Path(exists=True),
              default=Config.MODELS_FILE, help="JSON file with model descriptions (MODELS_FILE)")
@click.option("--database-url", default=Config.DATABASE_URL, show_default=True)
@click.pass_context
def cli(ctx, models_file, database_url):
    """Document query CLI - seed collections and run list queries."""
    if not models_file:
        raise click.UsageError("--models (or MODELS_FILE) is required")
    ctx.ensure_object(dict)
    ctx.obj['models'] = {m.name: m for m in load_models(models_file)}
    ctx.obj['database_url'] = database_url


@cli.command("seed")
@click.argument("model_name", metavar="MODEL")
@click.argument("file_path", type=click.Path(exists=True))
@click.pass_context
def seed(ctx, model_name, file_path):
    """
    Insert documents from FILE_PATH (a JSON array) into MODEL's collection.
    """
    model = _model(ctx, model_name)
    with open(file_path) as f:
        docs = json.load(f)
    if not isinstance(docs, list):
        click.secho("Error: expected a JSON array of documents", fg="red")
        sys.exit(1)

    store = _open_store(ctx)
    try:
        inserted = store.insert_many(model.collection, docs)
    except StoreError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)
    click.echo(f"Inserted {len(inserted)} document(s) into {model.collection}")


@cli.command("find")
@click.argument("model_name", metavar="MODEL")
@click.option("--query", "-q", help="Filter as JSON object")
@click.option("--projection", "--select", help="Fields, e.g. 'name -_id'")
@click.option("--sort", "-s", help="Sort, e.g. '-age name'")
@click.option("--populate", "-p", help="Relations to resolve, e.g. 'cats'")
@click.option("--skip", type=int)
@click.option("--limit", type=int)
@click.option("--page", type=int)
@click.option("--page-size", type=int)
@click.option("--total-count", is_flag=True, help="Also report the total match count")
@click.pass_context
def find(ctx, model_name, query, projection, sort, populate, skip, limit, page, page_size, total_count):
    """
    Run a list query against MODEL and print the envelope as JSON.
    """
    model = _model(ctx, model_name)
    raw = {
        'query': query,
        'projection': projection,
        'sort': sort,
        'populate': populate,
        'skip': skip,
        'limit': limit,
        'page': page,
        'pageSize': page_size,
        'totalCount': total_count,
    }
    raw = {k: v for k, v in raw.items() if v is not None}

    service = ResourceService(
        model,
        _open_store(ctx),
        pagination=PaginationConfig(default_limit=Config.DEFAULT_PAGE_LIMIT),
    )
    try:
        envelope = service.list(raw)
    except MalformedParameter as e:
        body, _ = validation_error_response(e)
        click.echo(json.dumps(body, indent=2), err=True)
        sys.exit(2)
    except StoreError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(json.dumps(envelope.to_dict(), indent=2, default=str))


if __name__ == "__main__":
    cli()
