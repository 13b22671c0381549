"""
Query executor - runs a QueryDescriptor against a collection.

find and count have no data dependency. In concurrent mode both are
submitted to a thread pool and the first failure wins: the other future is
cancelled (or abandoned if already running) and the error propagates without
waiting for it. The envelope is only built when every query succeeded.

totalCount may be stale relative to resources under concurrent writes;
the two queries share no transaction.
"""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Dict, Optional

from services.query.descriptor import QueryDescriptor, ResultEnvelope

if TYPE_CHECKING:
    from db.store import Collection

logger = logging.getLogger('services.query')


class QueryExecutor:
    """
    Args:
        concurrent: Run find and count on a thread pool (Config.COUNT_CONCURRENTLY)
        max_workers: Pool size (Config.QUERY_WORKERS)
    """

    def __init__(self, concurrent: bool = True, max_workers: int = 4):
        self.concurrent = concurrent
        self._pool: Optional[ThreadPoolExecutor] = None
        if concurrent:
            self._pool = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix='query',
            )

    def execute(self, descriptor: QueryDescriptor, collection: "Collection") -> ResultEnvelope:
        """
        Run find (and count when requested) and assemble the envelope.

        Raises:
            StoreError: from either query; no partial envelope is returned
        """
        start = time.perf_counter()

        if self._pool is not None and descriptor.wants_total_count:
            resources, total_count = self._run_concurrently(descriptor, collection)
        else:
            resources = self._find(descriptor, collection)
            total_count = collection.count(descriptor.filter) if descriptor.wants_total_count else None

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "query_executed collection=%s skip=%d limit=%d returned=%d total_count=%s elapsed_ms=%.2f",
            getattr(collection, 'name', type(collection).__name__),
            descriptor.skip,
            descriptor.limit,
            len(resources),
            total_count,
            elapsed_ms,
        )
        return ResultEnvelope(resources=resources, total_count=total_count)

    def _run_concurrently(self, descriptor: QueryDescriptor, collection: "Collection"):
        futures: Dict[str, Future] = {
            'find': self._pool.submit(self._find, descriptor, collection),
            'count': self._pool.submit(collection.count, descriptor.filter),
        }
        done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)

        for future in done:
            error = future.exception()
            if error is not None:
                for other in pending:
                    other.cancel()
                logger.warning(
                    "query_failed collection=%s pending_cancelled=%d err=%s",
                    getattr(collection, 'name', '?'), len(pending), error,
                )
                raise error

        return futures['find'].result(), futures['count'].result()

    @staticmethod
    def _find(descriptor: QueryDescriptor, collection: "Collection"):
        return collection.find(
            descriptor.filter,
            descriptor.projection,
            descriptor.sort,
            descriptor.populate,
            descriptor.skip,
            descriptor.limit,
        )

    def shutdown(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
