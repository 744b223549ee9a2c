from __future__ import annotations

from fastapi import APIRouter, Depends, status

from sample_buckets.cluster import get_evaluator
from sample_buckets.models import (
    InstallResponse,
    SampleBucketsState,
    SampleDescriptor,
    SelectionRequest,
)
from sample_buckets.services.evaluator import SampleBucketsEvaluator

router = APIRouter(prefix="/sample-buckets", tags=["sample-buckets"])


@router.get("", response_model=list[SampleDescriptor])
async def list_samples(
    evaluator: SampleBucketsEvaluator = Depends(get_evaluator),
) -> list[SampleDescriptor]:
    return await evaluator.list_samples()


@router.post("/state", response_model=SampleBucketsState)
async def get_state(
    payload: SelectionRequest,
    evaluator: SampleBucketsEvaluator = Depends(get_evaluator),
) -> SampleBucketsState:
    return await evaluator.evaluate(payload.selection)


@router.post("/install", response_model=InstallResponse, status_code=status.HTTP_202_ACCEPTED)
async def install_samples(
    payload: SelectionRequest,
    evaluator: SampleBucketsEvaluator = Depends(get_evaluator),
) -> InstallResponse:
    """Queue installation of the selected samples; progress shows up in the cluster's task list."""
    return InstallResponse(submitted=await evaluator.install(payload.selection))
