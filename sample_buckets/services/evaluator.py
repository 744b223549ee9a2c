from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Any

from sample_buckets.models import (
    PoolTotals,
    SampleBucketsState,
    SampleDescriptor,
    Selection,
    TaskState,
    WarningReport,
)
from sample_buckets.services.cluster_adapter import (
    BucketsAdapter,
    NodesAdapter,
    PoolAdapter,
    SampleCatalogAdapter,
    TasksAdapter,
)
from sample_buckets.services.errors import (
    EmptySelectionException,
    FetchFailure,
    InstallSubmissionFailure,
)
from sample_buckets.transport import ClusterRequestError

logger = logging.getLogger(__name__)

_MB = 1024 * 1024
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def parse_quota(value: Any) -> int:
    """Parse a requested quota the lenient way the console does.

    Leading base-10 digits are used ("512abc" -> 512); anything without them
    counts as 0 rather than failing the whole evaluation.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if match := _LEADING_INT.match(str(value)):
        try:
            return int(match.group(1), 10)
        except ValueError:
            # longer than the interpreter's int conversion limit
            logger.debug("Ignoring oversized quota value of %d digits", len(match.group(1)))
            return 0
    logger.debug("Ignoring unparseable quota value %r", value)
    return 0


def compute_warnings(
    selection: Selection,
    *,
    pool: PoolTotals,
    task_state: TaskState,
    existing_bucket_count: int,
    num_servers: int,
) -> WarningReport:
    quota_available = pool.ram_quota_available
    storage_needed = sum(parse_quota(v) for v in selection.values()) * num_servers

    quota: bool | int = False
    if num_servers > 0 and storage_needed > quota_available:
        # per-node shortfall in MB, rounded up
        quota = -(-(storage_needed - quota_available) // (_MB * num_servers))

    # A zero or unknown ceiling is never reported, even when the count exceeds it.
    max_bucket_count: bool | int = False
    ceiling = pool.max_bucket_count
    if ceiling and existing_bucket_count + len(selection) > ceiling:
        max_bucket_count = ceiling

    return WarningReport(
        quota=quota,
        rebalance=task_state.in_rebalance,
        max_bucket_count=max_bucket_count,
        no_servers=num_servers == 0,
    )


def partition_catalog(
    samples: list[SampleDescriptor],
) -> tuple[list[SampleDescriptor], list[SampleDescriptor]]:
    installed = [s for s in samples if s.installed]
    available = [s for s in samples if not s.installed]
    return installed, available


def selected_names(selection: Selection) -> list[str]:
    return [name for name, value in selection.items() if value]


class SampleBucketsEvaluator:
    """Decides whether a selection of sample buckets can be installed.

    Every evaluation reads five independent cluster snapshots concurrently and
    treats them as one point-in-time view.
    """

    def __init__(
        self,
        *,
        catalog: SampleCatalogAdapter,
        pool: PoolAdapter,
        tasks: TasksAdapter,
        buckets: BucketsAdapter,
        nodes: NodesAdapter,
    ) -> None:
        self._catalog = catalog
        self._pool = pool
        self._tasks = tasks
        self._buckets = buckets
        self._nodes = nodes

    async def list_samples(self) -> list[SampleDescriptor]:
        return await self._catalog.list_samples()

    async def evaluate(self, selection: Selection) -> SampleBucketsState:
        snapshots = await self._fetch_all(
            catalog=self._catalog.list_samples(),
            pool=self._pool.get_pool_totals(),
            tasks=self._tasks.get_task_state(),
            buckets=self._buckets.list_real_buckets(),
            nodes=self._nodes.get_nodes(),
        )
        warnings = compute_warnings(
            selection,
            pool=snapshots["pool"],
            task_state=snapshots["tasks"],
            existing_bucket_count=len(snapshots["buckets"]),
            num_servers=len(snapshots["nodes"].active),
        )
        installed, available = partition_catalog(snapshots["catalog"])
        logger.info(
            "Evaluated sample selection %s: installed=%d available=%d warnings=%s",
            sorted(selection),
            len(installed),
            len(available),
            warnings.model_dump(by_alias=True),
        )
        return SampleBucketsState(installed=installed, available=available, warnings=warnings)

    async def install(self, selection: Selection) -> list[str]:
        names = selected_names(selection)
        if not names:
            raise EmptySelectionException("No sample buckets selected for installation")
        try:
            await self._catalog.install(names)
        except ClusterRequestError as exc:
            logger.warning("Sample install submission failed for %s: %s", names, exc)
            raise InstallSubmissionFailure(names, exc) from exc
        logger.info("Submitted sample install for %s", names)
        return names

    async def _fetch_all(self, **sources) -> dict[str, Any]:
        tasks = {
            name: asyncio.create_task(coro, name=f"fetch-{name}")
            for name, coro in sources.items()
        }
        try:
            await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        # siblings cancelled above are not failures of their own
        failures: dict[str, BaseException] = {
            name: task.exception()
            for name, task in tasks.items()
            if not task.cancelled() and task.exception() is not None
        }
        if not failures:
            failures = {
                name: asyncio.CancelledError(f"fetch of {name} was cancelled")
                for name, task in tasks.items()
                if task.cancelled()
            }
        if failures:
            logger.warning("Cluster state fetch failed for %s", ", ".join(failures))
            raise FetchFailure(failures) from next(iter(failures.values()))
        return {name: task.result() for name, task in tasks.items()}
