"""
Background execution of the merge pipeline with last-writer-wins delivery.

Interactive front ends reprocess a boundary whenever the merge mode changes.
The pipeline is CPU bound and cannot be interrupted, so instead of cancelling
in-flight work every submission is numbered and a finished result is only
delivered if nothing newer has been delivered already.

Threading Model:
- Caller thread: submit() assigns a generation and hands work to the pool
- Worker threads: run the pipeline, then deliver through _complete()
- Delivery: serialized by a separate reentrant lock; stale generations are
  dropped. Counters have their own lock, so callbacks may read them or submit.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from kmlbuilder import builder
from kmlbuilder.config import Config

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, Dict[str, Any]], None]


class LatestResultRunner:
    """
    Runs ensure_single_polygon off the calling thread.

    Results reach 'on_result' as (generation, polygon). A result is discarded
    when a strictly newer generation has already been delivered.
    """

    def __init__(
        self,
        on_result: ResultCallback,
        configuration: Optional[Config] = None,
        max_workers: int = 2,
    ):
        self.on_result = on_result
        self.configuration = configuration
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kmlbuilder")
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()
        self._submitted = 0
        self._delivered = 0

    @property
    def latest_generation(self) -> int:
        with self._lock:
            return self._submitted

    @property
    def delivered_generation(self) -> int:
        with self._lock:
            return self._delivered

    def submit(self, geojson: Any, mode) -> Future:
        """Queue a pipeline run and return its future."""
        with self._lock:
            self._submitted += 1
            generation = self._submitted

        logger.debug(f"Submitting generation {generation} ({mode})")
        return self._executor.submit(self._run, generation, geojson, mode)

    def _run(self, generation: int, geojson: Any, mode) -> Dict[str, Any]:
        try:
            result = builder.ensure_single_polygon(geojson, mode, self.configuration)
        except Exception:
            logger.exception(f"Generation {generation} ({mode}) failed")
            raise
        self._complete(generation, result)
        return result

    def _complete(self, generation: int, result: Dict[str, Any]) -> bool:
        with self._delivery_lock:
            with self._lock:
                delivered = self._delivered
                if generation > delivered:
                    self._delivered = generation
            if generation <= delivered:
                logger.debug(
                    f"Discarding stale generation {generation}, {delivered} already delivered"
                )
                return False
            # Held across the callback so an older result can never land after a newer one
            self.on_result(generation, result)
        return True

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
        return False
