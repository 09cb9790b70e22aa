"""
Vector Store Setup Construct

Lambda-backed custom resource that prepares a freshly provisioned cluster for
vector storage. The custom resource's only property is the cluster endpoint
hostname, so CloudFormation invokes the handler once when the cluster is
created and again only if the endpoint changes (cluster replaced).
"""

import os

from constructs import Construct
from aws_cdk import (
    aws_lambda as lambda_,
    aws_ec2 as ec2,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager,
    CustomResource,
    Duration,
    Tags,
    Token
)

from ..networking.security_groups import ClusterSecurityGroupConstruct

RESOURCE_TYPE = "Custom::SetupVectorStore"
HANDLER_DIR = os.path.join(os.path.dirname(__file__), "setup_handler")


class VectorStoreSetupConstruct(Construct):
    """
    One-shot, endpoint-keyed setup of the vector store database.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        cluster: rds.DatabaseCluster,
        secret: secretsmanager.ISecret,
        network: ClusterSecurityGroupConstruct,
        postgresql_layer: lambda_.ILayerVersion,
        inline_password: bool = False,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.vpc = vpc
        self.cluster = cluster
        self.secret = secret
        self.network = network
        self.postgresql_layer = postgresql_layer
        self.inline_password = inline_password

        self._create_setup_lambda()

        # The handler must be inside the boundary before the custom resource runs
        self.network.allow_from(
            self.setup_handler,
            ec2.Port.tcp(self.cluster.cluster_endpoint.port)
        )

        self._create_custom_resource()

    def _environment(self) -> dict:
        endpoint = self.cluster.cluster_endpoint
        environment = {
            "DB_HOST": endpoint.hostname,
            "DB_USER": self.secret.secret_value_from_json("username").unsafe_unwrap(),
            "DB_NAME": self.secret.secret_value_from_json("dbname").unsafe_unwrap(),
            "DB_PORT": Token.as_string(endpoint.port),
            "DB_CLUSTER_IDENTIFIER": self.secret.secret_value_from_json(
                "dbClusterIdentifier"
            ).unsafe_unwrap(),
            "DB_SECRET_ARN": self.secret.secret_arn,
            "LOG_LEVEL": "INFO"
        }
        if self.inline_password:
            environment["DB_PASSWORD"] = self.secret.secret_value_from_json(
                "password"
            ).unsafe_unwrap()
        return environment

    def _create_setup_lambda(self) -> None:
        """Create the Lambda function that runs the setup."""
        self.setup_handler = lambda_.Function(
            self,
            "CustomResourceHandler",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="index.handler",
            code=lambda_.Code.from_asset(
                HANDLER_DIR,
                exclude=["*.pyc", "__pycache__"]
            ),
            timeout=Duration.minutes(5),
            layers=[self.postgresql_layer],
            vpc=self.vpc,
            environment=self._environment(),
            description="Enables the pgvector extension on the vector store cluster"
        )

        if not self.inline_password:
            self.secret.grant_read(self.setup_handler)

        Tags.of(self.setup_handler).add("Component", "Database")
        Tags.of(self.setup_handler).add("Function", "Initialization")

    def _create_custom_resource(self) -> None:
        """Create the custom resource that triggers the setup."""
        self.custom_resource = CustomResource(
            self,
            "CustomResourceSetup",
            service_token=self.setup_handler.function_arn,
            resource_type=RESOURCE_TYPE,
            properties={
                "id": self.cluster.cluster_endpoint.hostname
            }
        )

        self.custom_resource.node.add_dependency(self.cluster)
        self.custom_resource.node.add_dependency(self.network)

    def get_setup_handler(self) -> lambda_.Function:
        """Return the setup Lambda function."""
        return self.setup_handler
