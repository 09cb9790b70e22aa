"""
pgvector store on Aurora PostgreSQL

CDK constructs for a vector-capable Aurora PostgreSQL cluster:
- VectorStore: cluster, security group, optional start/stop schedule and
  one-shot pgvector setup
- PgvectorStoreStack: VectorStore in its own VPC with stack outputs
"""

from .config import ClusterSettings, StoreSettings
from .scheduling.cron import RdsScheduler
from .vector_store import VectorStore
from .pgvector_store_stack import PgvectorStoreStack

__all__ = [
    "ClusterSettings",
    "PgvectorStoreStack",
    "RdsScheduler",
    "StoreSettings",
    "VectorStore"
]
