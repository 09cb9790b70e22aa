import json

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2
from aws_cdk.assertions import Match, Template

from pgvector_store import PgvectorStoreStack, RdsScheduler, StoreSettings


def test_stack_creates_vpc_and_outputs():
    app = cdk.App()
    stack = PgvectorStoreStack(app, "PgvectorStoreStack")
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::EC2::VPC", 1)
    template.resource_count_is("AWS::RDS::DBCluster", 1)
    template.resource_count_is("AWS::EC2::VPCEndpoint", 1)

    outputs = template.to_json()["Outputs"]
    for name in (
        "ClusterIdentifier",
        "ClusterEndpoint",
        "ClusterPort",
        "DatabaseCredentialsSecretArn",
        "ClusterSecurityGroupId",
        "RdsSchedulerEnabled",
        "VpcId",
    ):
        assert name in outputs
    assert outputs["RdsSchedulerEnabled"]["Value"] == "False"


def test_stack_reuses_given_vpc():
    app = cdk.App()
    network = cdk.Stack(app, "Network")
    vpc = ec2.Vpc(network, "Shared", max_azs=2)

    stack = PgvectorStoreStack(app, "Store", vpc=vpc)
    template = Template.from_stack(stack)

    template.resource_count_is("AWS::EC2::VPC", 0)
    assert "VpcId" not in template.to_json().get("Outputs", {})


def test_stack_applies_settings():
    app = cdk.App()
    settings = StoreSettings(
        db_encryption=False,
        rds_scheduler=RdsScheduler("0 7 * * MON-FRI", "0 19 * * MON-FRI"),
    )
    stack = PgvectorStoreStack(app, "PgvectorStoreStack", settings=settings)
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::RDS::DBCluster", {"StorageEncrypted": False})
    template.resource_count_is("AWS::Scheduler::Schedule", 2)
    assert template.to_json()["Outputs"]["RdsSchedulerEnabled"]["Value"] == "True"


def test_stack_settings_from_context():
    app = cdk.App(context={"dbEncryption": "false", "environment": "test"})
    stack = PgvectorStoreStack(app, "PgvectorStoreStack", settings=StoreSettings.from_context(app.node))
    template = Template.from_stack(stack)

    template.has_resource_properties("AWS::RDS::DBCluster", {"StorageEncrypted": False})
    template.has_resource_properties(
        "AWS::RDS::DBCluster",
        {"Tags": Match.array_with([
            {"Key": "Environment", "Value": "test"},
            {"Key": "Extension", "Value": "pgvector"},
        ])},
    )


def test_mapping_schedule_from_context_reaches_the_schedules(schedule_payload):
    app = cdk.App(context={
        "rdsScheduler": {
            "restoredCron": {"minute": "0", "hour": "7", "weekDay": "MON-FRI"},
            "stopCron": {"minute": "30", "hour": "19", "weekDay": "MON-FRI"},
        },
    })
    stack = PgvectorStoreStack(app, "PgvectorStoreStack", settings=StoreSettings.from_context(app.node))
    template = Template.from_stack(stack)

    schedules = {
        s["Properties"]["Description"]: s
        for s in template.find_resources("AWS::Scheduler::Schedule").values()
    }
    assert schedules["Restored RDS Instance"]["Properties"]["ScheduleExpression"] == "cron(0 7 ? * MON-FRI *)"
    assert schedules["Stop RDS Instance"]["Properties"]["ScheduleExpression"] == "cron(30 19 ? * MON-FRI *)"

    expected_input = stack.resolve(
        json.dumps({
            "DbInstanceIdentifier": stack.vector_store.secret.secret_value_from_json(
                "dbClusterIdentifier"
            ).unsafe_unwrap()
        })
    )
    for schedule in schedules.values():
        assert schedule["Properties"]["Target"]["Input"] == expected_input
        assert schedule_payload(schedule) == {
            "DbInstanceIdentifier": "{{resolve:secretsmanager:<ref>:SecretString:dbClusterIdentifier::}}"
        }
    assert template.to_json()["Outputs"]["RdsSchedulerEnabled"]["Value"] == "True"
