"""
Resource service - list/search entry points for one model.

list() takes params from a query string, search() from a JSON body. Both
run the same normalize -> resolve -> execute pipeline, so a request
behaves identically whichever transport it arrived on.
"""

import logging
from typing import Any, Mapping, Optional

from api.contracts.normalize import normalize_find_params
from db.store import DocumentStore
from models.resource import ResourceModel
from services.query.descriptor import ResultEnvelope
from services.query.executor import QueryExecutor
from services.query.pagination import PaginationConfig
from utils.normalize import MalformedParameter

logger = logging.getLogger('services.resource')


class ResourceService:

    def __init__(
        self,
        model: ResourceModel,
        store: DocumentStore,
        *,
        pagination: PaginationConfig = PaginationConfig(),
        executor: Optional[QueryExecutor] = None,
        count_when_paginated: bool = False,
    ):
        self.model = model
        self.store = store
        self.pagination = pagination
        self.executor = executor or QueryExecutor(concurrent=False)
        self.count_when_paginated = count_when_paginated

    def list(self, raw_params: Mapping[str, Any]) -> ResultEnvelope:
        """GET <base_path>: params from the query string."""
        return self._find(raw_params or {}, source='query')

    def search(self, raw_params: Any) -> ResultEnvelope:
        """POST <base_path>/search: params from the request body."""
        if raw_params is None:
            raw_params = {}
        if not isinstance(raw_params, Mapping):
            raise MalformedParameter(
                f"Expected search body to be an object, got {type(raw_params).__name__}",
                field='body',
                received_value=raw_params,
            )
        return self._find(raw_params, source='body')

    def _find(self, raw_params: Mapping[str, Any], source: str) -> ResultEnvelope:
        descriptor = normalize_find_params(
            raw_params,
            pagination=self.pagination,
            count_when_paginated=self.count_when_paginated,
        )
        logger.debug(
            "find model=%s source=%s filter_keys=%s sort=%s populate=%s",
            self.model.name,
            source,
            sorted(descriptor.filter),
            [(s.field, s.direction) for s in descriptor.sort],
            [p.path for p in descriptor.populate],
        )
        return self.executor.execute(descriptor, self.store.collection(self.model))
