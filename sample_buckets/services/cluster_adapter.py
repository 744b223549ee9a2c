from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from sample_buckets.models import (
    BucketRecord,
    NodeList,
    NodeRecord,
    PoolTotals,
    SampleDescriptor,
    TaskState,
)
from sample_buckets.transport import ClusterRequestError, ClusterTransport, ResponseResult

logger = logging.getLogger(__name__)

SAMPLES_PATH = "/sampleBuckets"
SAMPLES_INSTALL_PATH = "/sampleBuckets/install"
POOL_PATH = "/pools/default"
TASKS_PATH = "/pools/default/tasks"
BUCKETS_PATH = "/pools/default/buckets"

# Memcached buckets hold no data on disk and are not counted against sample installs.
REAL_BUCKET_TYPES = frozenset({"membase", "couchbase", "ephemeral"})


def _malformed(method: str, path: str, payload: Any, reason: str) -> ClusterRequestError:
    return ClusterRequestError(
        message=f"Unexpected response from {path}: {reason}",
        result=ResponseResult(method=method, path=path, status_code=None, body=repr(payload)),
        category="fatal",
    )


def _expect_list(method: str, path: str, payload: Any) -> list[Any]:
    if not isinstance(payload, list):
        raise _malformed(method, path, payload, "expected a JSON list")
    return payload


def _expect_dict(method: str, path: str, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise _malformed(method, path, payload, "expected a JSON object")
    return payload


class SampleCatalogAdapter:
    """Adapter for the sample dataset catalog and its install trigger."""

    def __init__(self, transport: ClusterTransport, *, install_timeout: float) -> None:
        self._transport = transport
        self._install_timeout = install_timeout

    async def list_samples(self) -> list[SampleDescriptor]:
        payload = await self._transport.request_json(
            "GET", SAMPLES_PATH, error_message="Failed to list sample buckets"
        )
        try:
            return [
                SampleDescriptor.model_validate(item)
                for item in _expect_list("GET", SAMPLES_PATH, payload)
            ]
        except ValidationError as exc:
            raise _malformed("GET", SAMPLES_PATH, payload, str(exc)) from exc

    async def install(self, names: list[str]) -> None:
        logger.info("Submitting sample install for %s (timeout=%ss)", names, self._install_timeout)
        await self._transport.request_json(
            "POST",
            SAMPLES_INSTALL_PATH,
            json=names,
            timeout=self._install_timeout,
            error_message="Failed to install sample buckets",
        )


class PoolAdapter:
    """Adapter for the RAM quota totals and bucket ceiling of the default pool."""

    def __init__(self, transport: ClusterTransport) -> None:
        self._transport = transport

    async def get_pool_totals(self) -> PoolTotals:
        payload = _expect_dict(
            "GET",
            POOL_PATH,
            await self._transport.request_json(
                "GET", POOL_PATH, error_message="Failed to read pool details"
            ),
        )
        try:
            ram = payload["storageTotals"]["ram"]
            return PoolTotals(
                ram_quota_total=ram["quotaTotal"],
                ram_quota_used=ram["quotaUsed"],
                max_bucket_count=payload.get("maxBucketCount"),
            )
        except (KeyError, TypeError, ValidationError) as exc:
            raise _malformed("GET", POOL_PATH, payload, f"missing RAM storage totals ({exc})") from exc


class TasksAdapter:
    def __init__(self, transport: ClusterTransport) -> None:
        self._transport = transport

    async def get_task_state(self) -> TaskState:
        tasks = _expect_list(
            "GET",
            TASKS_PATH,
            await self._transport.request_json(
                "GET", TASKS_PATH, error_message="Failed to read cluster tasks"
            ),
        )
        in_rebalance = any(
            isinstance(task, dict) and task.get("type") == "rebalance" and task.get("status") == "running"
            for task in tasks
        )
        return TaskState(in_rebalance=in_rebalance)


class BucketsAdapter:
    def __init__(self, transport: ClusterTransport) -> None:
        self._transport = transport

    async def list_real_buckets(self) -> list[BucketRecord]:
        payload = _expect_list(
            "GET",
            BUCKETS_PATH,
            await self._transport.request_json(
                "GET", BUCKETS_PATH, error_message="Failed to list buckets"
            ),
        )
        try:
            buckets = [BucketRecord.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise _malformed("GET", BUCKETS_PATH, payload, str(exc)) from exc
        return [bucket for bucket in buckets if bucket.bucket_type in REAL_BUCKET_TYPES]


class NodesAdapter:
    def __init__(self, transport: ClusterTransport) -> None:
        self._transport = transport

    async def get_nodes(self) -> NodeList:
        payload = _expect_dict(
            "GET",
            POOL_PATH,
            await self._transport.request_json(
                "GET", POOL_PATH, error_message="Failed to list cluster nodes"
            ),
        )
        try:
            nodes = [NodeRecord.model_validate(item) for item in payload.get("nodes", [])]
        except (TypeError, ValidationError) as exc:
            raise _malformed("GET", POOL_PATH, payload, f"invalid node list ({exc})") from exc
        return partition_nodes(nodes)


def partition_nodes(nodes: list[NodeRecord]) -> NodeList:
    return NodeList(
        active=[n for n in nodes if n.cluster_membership == "active"],
        pending=[n for n in nodes if n.cluster_membership == "inactiveAdded"],
        failed_over=[n for n in nodes if n.cluster_membership == "inactiveFailed"],
        down=[n for n in nodes if n.status != "healthy"],
    )
