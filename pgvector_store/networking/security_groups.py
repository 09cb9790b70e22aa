"""
Security Group for the Aurora vector store

The cluster gets its own security group with no inbound rules. Callers are
granted access one peer at a time through allow_from; grants only ever
accumulate during a deployment.
"""

from typing import List, Tuple

from constructs import Construct
from aws_cdk import (
    aws_ec2 as ec2,
    Tags
)


class ClusterSecurityGroupConstruct(Construct):
    """
    Network boundary of the vector store cluster.
    """

    def __init__(self, scope: Construct, construct_id: str, vpc: ec2.IVpc) -> None:
        super().__init__(scope, construct_id)

        self.vpc = vpc
        self._grants: List[Tuple[ec2.IConnectable, str]] = []

        self.security_group = ec2.SecurityGroup(
            self,
            "ClusterSecurityGroup",
            vpc=self.vpc,
            description="Security group for the Aurora PostgreSQL vector store",
            allow_all_outbound=False  # Database should not initiate outbound connections
        )

        Tags.of(self.security_group).add("Component", "Aurora")

    def allow_from(self, peer: ec2.IConnectable, port: ec2.Port) -> None:
        """
        Allow `peer` to reach the cluster on `port`.

        Repeating a grant for the same peer and port does not add a rule.
        """
        key = port.to_string()
        for granted, granted_port in self._grants:
            if granted is peer and granted_port == key:
                return

        self.security_group.connections.allow_from(peer, port)
        self._grants.append((peer, key))

    @property
    def peers(self) -> List[ec2.IConnectable]:
        """Peers granted so far, in grant order."""
        return [peer for peer, _ in self._grants]
