from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, Callable

import httpx
import pytest
from starlette.testclient import TestClient
from typer.testing import CliRunner

from sample_buckets.cluster import get_evaluator
from sample_buckets.models import (
    BucketRecord,
    NodeList,
    NodeRecord,
    PoolTotals,
    SampleDescriptor,
    TaskState,
)
from sample_buckets.services.evaluator import SampleBucketsEvaluator
from sample_buckets.transport import ClusterTransport

GB = 1024 * 1024 * 1024


class FakeCluster:
    """In-memory stand-in for all five cluster adapters."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.samples = [
            SampleDescriptor(name="beer-sample", installed=False),
            SampleDescriptor(name="gamesim-sample", installed=True),
            SampleDescriptor(name="travel-sample", installed=False),
        ]
        self.pool = PoolTotals(ram_quota_total=4 * GB, ram_quota_used=GB, max_bucket_count=30)
        self.task_state = TaskState(in_rebalance=False)
        self.buckets = [BucketRecord(name="default")]
        self.nodes = NodeList(active=[NodeRecord(hostname="10.0.0.1:8091")])
        self.raise_on: dict[str, Exception] = {}

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.raise_on:
            raise self.raise_on[name]

    async def list_samples(self) -> list[SampleDescriptor]:
        self._record("list_samples")
        return list(self.samples)

    async def install(self, names: list[str]) -> None:
        self._record("install", names)

    async def get_pool_totals(self) -> PoolTotals:
        self._record("get_pool_totals")
        return self.pool

    async def get_task_state(self) -> TaskState:
        self._record("get_task_state")
        return self.task_state

    async def list_real_buckets(self) -> list[BucketRecord]:
        self._record("list_real_buckets")
        return list(self.buckets)

    async def get_nodes(self) -> NodeList:
        self._record("get_nodes")
        return self.nodes


def make_evaluator(cluster: FakeCluster) -> SampleBucketsEvaluator:
    return SampleBucketsEvaluator(
        catalog=cluster, pool=cluster, tasks=cluster, buckets=cluster, nodes=cluster
    )


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def evaluator(cluster) -> SampleBucketsEvaluator:
    return make_evaluator(cluster)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


@pytest.fixture
def mock_transport():
    """Build a ClusterTransport whose requests are answered by ``handler``."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> ClusterTransport:
        return ClusterTransport(
            base_url="http://cluster.test:8091",
            timeout=5.0,
            auth=("Administrator", "password"),
            transport=httpx.MockTransport(handler),
        )

    return _factory


@pytest.fixture
def client(evaluator):
    from sample_buckets.main import app

    app.dependency_overrides[get_evaluator] = lambda: evaluator

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture()
def cli_runner(evaluator, monkeypatch):
    import sample_buckets.cli as cli

    @asynccontextmanager
    async def _scope(settings=None):
        yield evaluator

    monkeypatch.setattr(cli, "evaluator_scope", _scope)
    return CliRunner(), cli.app
