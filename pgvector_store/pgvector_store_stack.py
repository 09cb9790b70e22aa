"""
pgvector Store Stack

Deploys the vector store into a new VPC (or an existing one passed in by the
caller) and publishes the connection handles as stack outputs.
"""

from typing import Any, Optional

import aws_cdk as cdk
from constructs import Construct
from aws_cdk import (
    aws_ec2 as ec2,
    Stack,
    CfnOutput,
    Token
)

from .config import StoreSettings
from .networking.vpc_construct import VpcConstruct
from .vector_store import VectorStore


class PgvectorStoreStack(Stack):
    """
    Main CDK Stack for the pgvector store

    - VPC (unless one is supplied)
    - VectorStore construct (cluster, security group, scheduler, setup)
    - Outputs for the cluster and its credentials
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: Optional[StoreSettings] = None,
        vpc: Optional[ec2.IVpc] = None,
        **kwargs: Any
    ) -> None:
        settings = settings or StoreSettings()

        super().__init__(scope, construct_id, **kwargs)

        cdk.Tags.of(self).add("Project", "PgvectorStore")
        cdk.Tags.of(self).add("Environment", self.node.try_get_context("environment") or "dev")

        if vpc is None:
            self.vpc_construct = VpcConstruct(self, "VpcConstruct")
            vpc = self.vpc_construct.get_vpc()
        self.vpc = vpc

        self.vector_store = VectorStore(
            self,
            "VectorStore",
            vpc=self.vpc,
            db_encryption=settings.db_encryption,
            rds_scheduler=settings.rds_scheduler,
            cluster_settings=settings.cluster,
            inline_password=settings.inline_password
        )

        cluster = self.vector_store.cluster

        CfnOutput(
            self,
            "ClusterIdentifier",
            value=cluster.cluster_identifier,
            description="Aurora cluster identifier"
        )

        CfnOutput(
            self,
            "ClusterEndpoint",
            value=cluster.cluster_endpoint.hostname,
            description="Aurora cluster writer endpoint"
        )

        CfnOutput(
            self,
            "ClusterPort",
            value=Token.as_string(cluster.cluster_endpoint.port),
            description="Aurora cluster port"
        )

        CfnOutput(
            self,
            "DatabaseCredentialsSecretArn",
            value=self.vector_store.secret.secret_arn,
            description="ARN of the database credentials secret"
        )

        CfnOutput(
            self,
            "ClusterSecurityGroupId",
            value=self.vector_store.security_group.security_group_id,
            description="Security group guarding the cluster port"
        )

        CfnOutput(
            self,
            "RdsSchedulerEnabled",
            value=str(settings.rds_scheduler.has_cron()),
            description="Whether the cluster is started and stopped on a schedule"
        )
