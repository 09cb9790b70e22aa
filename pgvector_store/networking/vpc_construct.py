"""
VPC Construct for the pgvector store

Used by PgvectorStoreStack when no existing VPC is passed in. Public subnets
host the NAT Gateway; private subnets host the Aurora cluster and the setup
Lambda, which reaches Secrets Manager through an interface endpoint.
"""

from constructs import Construct
from aws_cdk import (
    aws_ec2 as ec2,
    CfnOutput,
    Tags
)


class VpcConstruct(Construct):
    """
    VPC construct that creates networking infrastructure for the vector store.

    Creates:
    - VPC with public and private subnets across 2 AZs
    - A single NAT Gateway
    - Secrets Manager interface endpoint
    """

    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        self.vpc = ec2.Vpc(
            self,
            "VectorStoreVpc",
            ip_addresses=ec2.IpAddresses.cidr("10.0.0.0/16"),
            max_azs=2,
            nat_gateways=1,  # single NAT for cost
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="Public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=24,
                ),
                ec2.SubnetConfiguration(
                    name="Private",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=22,
                ),
            ],
            enable_dns_hostnames=True,
            enable_dns_support=True,
        )

        # Secrets Manager endpoint for the setup Lambda
        self.secrets_manager_endpoint = ec2.InterfaceVpcEndpoint(
            self,
            "SecretsManagerEndpoint",
            vpc=self.vpc,
            service=ec2.InterfaceVpcEndpointAwsService.SECRETS_MANAGER,
            subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            private_dns_enabled=True
        )

        Tags.of(self.vpc).add("Purpose", "VectorStore")

        CfnOutput(
            scope,
            "VpcId",
            value=self.vpc.vpc_id,
            description="ID of the VPC"
        )

    def get_vpc(self) -> ec2.Vpc:
        """Return the VPC instance."""
        return self.vpc
