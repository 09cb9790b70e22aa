"""
Vector Store Construct

Aurora PostgreSQL cluster used to store embedding vectors and search them.
Wires together the cluster security group, the cluster, the optional
start/stop schedule and the one-shot pgvector setup.
"""

import logging
from typing import Optional

from constructs import Construct
from aws_cdk import (
    aws_ec2 as ec2,
    aws_lambda as lambda_,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager
)

from .config import ClusterSettings
from .database.aurora_cluster import AuroraClusterConstruct
from .database.vector_store_setup import VectorStoreSetupConstruct
from .layers.psycopg2_layer import DependenciesLayerConstruct
from .networking.security_groups import ClusterSecurityGroupConstruct
from .scheduling.cron import RdsScheduler
from .scheduling.rds_scheduler import RdsSchedulerConstruct

logger = logging.getLogger(__name__)


class VectorStore(Construct):
    """
    Vector store construct.

    Exposes the cluster, its credentials secret and its security group, and
    lets other components request access to the cluster port via allow_from.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        db_encryption: bool,
        rds_scheduler: RdsScheduler,
        cluster_settings: Optional[ClusterSettings] = None,
        inline_password: bool = False,
        dependencies_layer: Optional[lambda_.ILayerVersion] = None,
        **kwargs
    ) -> None:
        cluster_settings = cluster_settings or ClusterSettings()

        super().__init__(scope, construct_id, **kwargs)

        self._network = ClusterSecurityGroupConstruct(self, "Network", vpc=vpc)

        self._database = AuroraClusterConstruct(
            self,
            "Database",
            vpc=vpc,
            security_group=self._network.security_group,
            storage_encrypted=db_encryption,
            settings=cluster_settings
        )

        self.scheduler: Optional[RdsSchedulerConstruct] = None
        if rds_scheduler.has_cron():
            self.scheduler = RdsSchedulerConstruct(
                self,
                "Scheduler",
                cluster_identifier=self.secret.secret_value_from_json(
                    "dbClusterIdentifier"
                ).unsafe_unwrap(),
                rds_scheduler=rds_scheduler
            )
            self.scheduler.node.add_dependency(self.cluster)
        else:
            logger.debug("RDS scheduler disabled for %s", self.node.path)

        if dependencies_layer is None:
            dependencies_layer = DependenciesLayerConstruct(self, "DependenciesLayer").get_layer()

        self.setup = VectorStoreSetupConstruct(
            self,
            "Setup",
            vpc=vpc,
            cluster=self.cluster,
            secret=self.secret,
            network=self._network,
            postgresql_layer=dependencies_layer,
            inline_password=inline_password
        )

    @property
    def security_group(self) -> ec2.ISecurityGroup:
        return self._network.security_group

    @property
    def cluster(self) -> rds.IDatabaseCluster:
        return self._database.cluster

    @property
    def secret(self) -> secretsmanager.ISecret:
        return self._database.get_credentials_secret()

    def allow_from(self, other: ec2.IConnectable) -> None:
        """Allow `other` to connect to the cluster port."""
        self._network.allow_from(
            other,
            ec2.Port.tcp(self.cluster.cluster_endpoint.port)
        )
