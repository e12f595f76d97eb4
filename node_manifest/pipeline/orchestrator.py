"""Batch orchestration of pending node manifests.

Drains every pending request through a fixed pool of worker coroutines,
writes one summary, then removes the processed requests from the store.
"""

from __future__ import annotations

import asyncio
import logging
import time

from node_manifest.config import VERBOSE_ENV, ManifestSettings
from node_manifest.core.errors import NodeManifestError
from node_manifest.models.manifest import BatchResult
from node_manifest.models.types import PendingManifestRequest
from node_manifest.pipeline.processor import ManifestProcessor
from node_manifest.pipeline.protocols import Reporter, SiteStore
from node_manifest.pipeline.reporter import LoggingReporter
from node_manifest.resolution.candidates import candidate_source_for
from node_manifest.resolution.resolver import OwnerResolver

logger = logging.getLogger(__name__)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


class BatchOrchestrator:
    """Processes all pending manifests with bounded concurrency.

    At most settings.concurrency requests are in flight at once. The
    pending collection is read once when a run starts; requests
    registered during the run are left for the next one.
    """

    def __init__(
        self,
        store: SiteStore,
        processor: ManifestProcessor,
        reporter: Reporter,
        settings: ManifestSettings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Site store holding the pending requests.
            processor: Handles a single request.
            reporter: Receives the run summary.
            settings: Verbosity and concurrency. Defaults to ManifestSettings().
        """
        self._store = store
        self._processor = processor
        self._reporter = reporter
        self._settings = settings or ManifestSettings()

    async def run(self) -> dict[str, str] | None:
        """Process every pending manifest request.

        Returns:
            Mapping of page path -> manifest id for resolved pages, or
            None if nothing was pending.
        """
        pending = list(self._store.pending_manifests())
        if not pending:
            return None

        start_time = time.monotonic()
        result = BatchResult()

        queue: asyncio.Queue[PendingManifestRequest] = asyncio.Queue()
        for request in pending:
            queue.put_nowait(request)

        worker_count = min(self._settings.concurrency, len(pending))
        workers = [
            asyncio.create_task(self._worker(queue, result))
            for _ in range(worker_count)
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        self._report_summary(result, elapsed_ms)

        self._store.delete_pending_manifests(pending)
        return result.path_to_id_map

    async def _worker(
        self,
        queue: asyncio.Queue[PendingManifestRequest],
        result: BatchResult,
    ) -> None:
        """Take requests off the queue until it is empty.

        Counters and collections on result are only touched between
        awaits, on the event loop thread.
        """
        while True:
            try:
                request = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                artifact = await self._processor.process(
                    request,
                    result.unique_diagnostic_ids,
                    result.path_to_id_map,
                    self._settings.verbose,
                )
            except NodeManifestError as exc:
                logger.error(
                    "manifest_failed plugin=%s id=%s error=%s",
                    request.plugin_name,
                    request.manifest_id,
                    exc,
                )
                result.failures.append((request.manifest_id, exc))
                artifact = None

            if artifact is not None:
                result.processed_count += 1
            else:
                result.failed_count += 1

            # Yield to the loop before the next request
            await asyncio.sleep(0)

    def _report_summary(self, result: BatchResult, elapsed_ms: int) -> None:
        summary = (
            f"Wrote out {result.processed_count} node page manifest "
            f"file{_plural(result.processed_count)} in {elapsed_ms} ms."
        )
        if result.failed_count > 0:
            summary += (
                f" {result.failed_count} manifest{_plural(result.failed_count)}"
                " couldn't be processed."
            )
        self._reporter.info(summary)

        if result.failures:
            logger.warning(
                "manifest_batch_failures count=%d ids=%s",
                len(result.failures),
                ",".join(manifest_id for manifest_id, _ in result.failures),
            )

        if not self._settings.verbose and result.unique_diagnostic_ids:
            ids = ", ".join(sorted(result.unique_diagnostic_ids))
            self._reporter.info(
                f"Node manifests produced warnings [{ids}]. "
                f'To see full warning messages set {VERBOSE_ENV} to "true".'
            )


def build_orchestrator(
    store: SiteStore,
    reporter: Reporter | None = None,
    settings: ManifestSettings | None = None,
) -> BatchOrchestrator:
    """Wire the default resolver, processor and reporter for a store."""
    settings = settings or ManifestSettings.from_env()
    reporter = reporter or LoggingReporter()

    resolver = OwnerResolver(
        store,
        candidate_source_for(store, development=settings.development),
        filesystem_route_creator=settings.filesystem_route_creator,
    )
    processor = ManifestProcessor(store, resolver, reporter)
    return BatchOrchestrator(store, processor, reporter, settings)


async def process_node_manifests(
    store: SiteStore,
    reporter: Reporter | None = None,
    settings: ManifestSettings | None = None,
) -> dict[str, str] | None:
    """Write manifests for every pending request and clear them.

    Settings default to ManifestSettings.from_env().
    """
    return await build_orchestrator(store, reporter, settings).run()


def run_node_manifests(
    store: SiteStore,
    reporter: Reporter | None = None,
    settings: ManifestSettings | None = None,
) -> dict[str, str] | None:
    """Synchronous wrapper around process_node_manifests."""
    return asyncio.run(process_node_manifests(store, reporter, settings))
