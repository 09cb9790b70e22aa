"""
Aurora PostgreSQL Cluster Construct

This construct creates the Aurora PostgreSQL Serverless v2 cluster that backs
the vector store, together with its generated master credentials. The
credentials secret is attached to the cluster, so it also carries host, port
and dbClusterIdentifier once the cluster exists.
"""

from constructs import Construct
from aws_cdk import (
    aws_rds as rds,
    aws_ec2 as ec2,
    aws_secretsmanager as secretsmanager,
    Tags
)

from ..config import ClusterSettings


class AuroraClusterConstruct(Construct):
    """
    Aurora PostgreSQL cluster construct for vector storage.

    Creates:
    - Master credentials in Secrets Manager
    - Aurora PostgreSQL Serverless v2 cluster with one writer
    - Optional Serverless v2 readers (off by default)
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        security_group: ec2.ISecurityGroup,
        storage_encrypted: bool,
        settings: ClusterSettings,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.vpc = vpc
        self.security_group = security_group
        self.storage_encrypted = storage_encrypted
        self.settings = settings

        self._create_database_credentials()
        self._create_aurora_cluster()

    def _create_database_credentials(self) -> None:
        """Create generated master credentials for the cluster."""
        self.database_credentials = rds.DatabaseSecret(
            self,
            "DatabaseCredentials",
            username="postgres",
            dbname=self.settings.database_name
        )

        Tags.of(self.database_credentials).add("Component", "Database")

    def _engine(self) -> rds.IClusterEngine:
        return rds.DatabaseClusterEngine.aurora_postgres(
            version=rds.AuroraPostgresEngineVersion.of(
                self.settings.engine_version,
                self.settings.engine_major_version
            )
        )

    def _create_aurora_cluster(self) -> None:
        """Create the Serverless v2 cluster."""
        readers = [
            rds.ClusterInstance.serverless_v2(
                f"reader{index}",
                auto_minor_version_upgrade=False
            )
            for index in range(1, self.settings.reader_count + 1)
        ]

        self.cluster = rds.DatabaseCluster(
            self,
            "Cluster",
            engine=self._engine(),
            credentials=rds.Credentials.from_secret(self.database_credentials),
            vpc=self.vpc,
            security_groups=[self.security_group],
            default_database_name=self.settings.database_name,
            enable_data_api=True,
            storage_encrypted=self.storage_encrypted,

            # Serverless v2 scaling configuration
            serverless_v2_min_capacity=self.settings.min_capacity,
            serverless_v2_max_capacity=self.settings.max_capacity,

            writer=rds.ClusterInstance.serverless_v2(
                "writer",
                auto_minor_version_upgrade=False
            ),
            readers=readers
        )

        Tags.of(self.cluster).add("Component", "Database")
        Tags.of(self.cluster).add("Engine", "PostgreSQL")
        Tags.of(self.cluster).add("Extension", "pgvector")

    def get_credentials_secret(self) -> secretsmanager.ISecret:
        """Return the credentials secret attached to the cluster."""
        return self.cluster.secret
