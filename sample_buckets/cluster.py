from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sample_buckets.config import Settings, load_settings
from sample_buckets.services.cluster_adapter import (
    BucketsAdapter,
    NodesAdapter,
    PoolAdapter,
    SampleCatalogAdapter,
    TasksAdapter,
)
from sample_buckets.services.evaluator import SampleBucketsEvaluator
from sample_buckets.transport import ClusterTransport


def build_evaluator(transport: ClusterTransport, settings: Settings) -> SampleBucketsEvaluator:
    return SampleBucketsEvaluator(
        catalog=SampleCatalogAdapter(transport, install_timeout=settings.install_timeout),
        pool=PoolAdapter(transport),
        tasks=TasksAdapter(transport),
        buckets=BucketsAdapter(transport),
        nodes=NodesAdapter(transport),
    )


@asynccontextmanager
async def evaluator_scope(settings: Settings | None = None) -> AsyncIterator[SampleBucketsEvaluator]:
    settings = settings or load_settings()
    async with ClusterTransport.from_settings(settings) as transport:
        yield build_evaluator(transport, settings)


async def get_evaluator() -> AsyncIterator[SampleBucketsEvaluator]:
    async with evaluator_scope() as evaluator:
        yield evaluator
