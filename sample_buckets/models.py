from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

# Sample name -> requested per-node RAM quota in bytes, as an int or decimal string.
Selection = dict[str, Any]


class ClusterModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SampleDescriptor(ClusterModel):
    name: str
    installed: bool
    quota_needed: Optional[int] = None


class PoolTotals(ClusterModel):
    ram_quota_total: int
    ram_quota_used: int
    max_bucket_count: Optional[int] = None

    @property
    def ram_quota_available(self) -> int:
        return self.ram_quota_total - self.ram_quota_used


class TaskState(ClusterModel):
    in_rebalance: bool = False


class BucketRecord(ClusterModel):
    name: str
    bucket_type: str = "membase"


class NodeRecord(ClusterModel):
    hostname: str
    cluster_membership: str = "active"
    status: str = "healthy"


class NodeList(ClusterModel):
    active: list[NodeRecord] = []
    pending: list[NodeRecord] = []
    failed_over: list[NodeRecord] = []
    down: list[NodeRecord] = []


class WarningReport(ClusterModel):
    quota: Literal[False] | int = False
    rebalance: bool = False
    max_bucket_count: Literal[False] | int = False
    no_servers: bool = False

    @property
    def has_warnings(self) -> bool:
        return (
            self.quota is not False
            or self.rebalance
            or self.max_bucket_count is not False
            or self.no_servers
        )


class SampleBucketsState(ClusterModel):
    installed: list[SampleDescriptor]
    available: list[SampleDescriptor]
    warnings: WarningReport

    @computed_field
    @property
    def blocked(self) -> bool:
        return self.warnings.has_warnings


class SelectionRequest(BaseModel):
    selection: Selection


class InstallResponse(BaseModel):
    submitted: list[str]
