"""
RDS Scheduler Construct

Starts and stops the Aurora cluster on a cron schedule using EventBridge
Scheduler universal targets. The scheduler role may only call
rds:StartDBCluster and rds:StopDBCluster on clusters in the deploying account.
"""

import json

from constructs import Construct
from aws_cdk import (
    aws_iam as iam,
    aws_scheduler as scheduler,
    ArnFormat,
    Stack,
    Tags
)

from .cron import RdsScheduler

START_CLUSTER_TARGET = "arn:aws:scheduler:::aws-sdk:rds:startDBCluster"
STOP_CLUSTER_TARGET = "arn:aws:scheduler:::aws-sdk:rds:stopDBCluster"


class RdsSchedulerConstruct(Construct):
    """
    Resume/suspend automation for the vector store cluster.

    Creates:
    - IAM role assumed by scheduler.amazonaws.com
    - Policy limited to start/stop of RDS clusters in this account
    - Two CfnSchedule resources (restore and stop)
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        cluster_identifier: str,
        rds_scheduler: RdsScheduler,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.cluster_identifier = cluster_identifier
        self.rds_scheduler = rds_scheduler

        self._create_scheduler_role()
        self._create_schedules()

    def _create_scheduler_role(self) -> None:
        """Create the role EventBridge Scheduler assumes to start and stop the cluster."""
        self.role = iam.Role(
            self,
            "role-rds-scheduler",
            assumed_by=iam.ServicePrincipal("scheduler.amazonaws.com"),
            description="start and stop RDS"
        )

        self.policy = iam.Policy(
            self,
            "policy-SchedulerPolicyForRDS",
            policy_name="policy-rds-start-and-stop",
            roles=[self.role],
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["rds:StartDBCluster", "rds:StopDBCluster"],
                    resources=[
                        Stack.of(self).format_arn(
                            service="rds",
                            resource="cluster",
                            resource_name="*",
                            arn_format=ArnFormat.COLON_RESOURCE_NAME
                        )
                    ]
                )
            ]
        )

        Tags.of(self.role).add("Component", "Scheduler")

    def _create_schedules(self) -> None:
        """Create the restore and stop schedules."""
        target_input = json.dumps({"DbInstanceIdentifier": self.cluster_identifier})

        self.restore_schedule = scheduler.CfnSchedule(
            self,
            "RestoredRdsScheduler",
            description="Restored RDS Instance",
            schedule_expression=self.rds_scheduler.restored_expression,
            flexible_time_window=scheduler.CfnSchedule.FlexibleTimeWindowProperty(mode="OFF"),
            target=scheduler.CfnSchedule.TargetProperty(
                arn=START_CLUSTER_TARGET,
                role_arn=self.role.role_arn,
                input=target_input
            )
        )

        self.stop_schedule = scheduler.CfnSchedule(
            self,
            "StopRdsScheduler",
            description="Stop RDS Instance",
            schedule_expression=self.rds_scheduler.stop_expression,
            flexible_time_window=scheduler.CfnSchedule.FlexibleTimeWindowProperty(mode="OFF"),
            target=scheduler.CfnSchedule.TargetProperty(
                arn=STOP_CLUSTER_TARGET,
                role_arn=self.role.role_arn,
                input=target_input
            )
        )
