#!/usr/bin/env python3
"""
pgvector Store CDK Application

Deploys an Aurora PostgreSQL Serverless v2 cluster prepared for vector
storage:
- Cluster security group with no inbound rules until access is granted
- Optional EventBridge Scheduler rules that start and stop the cluster
- Custom resource that enables the pgvector extension once per cluster

Configuration is read from CDK context (cdk.json, or -c key=value).
"""

import logging

import aws_cdk as cdk
from pgvector_store import PgvectorStoreStack, StoreSettings


logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

app = cdk.App()

# Get environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account") or "123456789012",
    region=app.node.try_get_context("region") or "us-east-1"
)

# Deploy the main stack
PgvectorStoreStack(
    app,
    "PgvectorStoreStack",
    settings=StoreSettings.from_context(app.node),
    env=env,
    description="Aurora PostgreSQL vector store with pgvector"
)

app.synth()
