"""
Database constructs for the pgvector store

This package contains constructs for:
- Aurora PostgreSQL cluster and its generated credentials
- Custom resource Lambda that enables the pgvector extension
"""

from .aurora_cluster import AuroraClusterConstruct
from .vector_store_setup import VectorStoreSetupConstruct

__all__ = [
    "AuroraClusterConstruct",
    "VectorStoreSetupConstruct"
]
