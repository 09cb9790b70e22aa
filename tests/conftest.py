"""
Shared pytest fixtures.

CDK tests synthesize into an env-agnostic stack, so nothing here talks to
AWS. The region default keeps boto3 happy when the setup handler is imported.
"""
import json
import os

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

import aws_cdk as cdk
import pytest
from aws_cdk import aws_ec2 as ec2
from aws_cdk.assertions import Template

from pgvector_store import RdsScheduler, VectorStore


class VectorStoreHarness:
    """A stack holding one VectorStore, plus its synthesized template."""

    def __init__(self, construct_id: str = "VectorStore", **kwargs):
        self.app = cdk.App()
        self.stack = cdk.Stack(self.app, "TestStack")
        self.vpc = ec2.Vpc(self.stack, "Vpc", max_azs=2, nat_gateways=1)
        kwargs.setdefault("db_encryption", True)
        kwargs.setdefault("rds_scheduler", RdsScheduler())
        self.store = VectorStore(self.stack, construct_id, vpc=self.vpc, **kwargs)
        self._template = None

    @property
    def template(self) -> Template:
        if self._template is None:
            self._template = Template.from_stack(self.stack)
        return self._template

    @property
    def resources(self) -> dict:
        return self.template.to_json()["Resources"]

    def logical_id(self, construct) -> str:
        return self.stack.get_logical_id(construct.node.default_child)

    def only(self, resource_type: str, props: dict = None):
        found = self.template.find_resources(resource_type, props)
        assert len(found) == 1, f"expected one {resource_type}, found {len(found)}"
        return next(iter(found.items()))


@pytest.fixture
def harness_factory():
    return VectorStoreHarness


@pytest.fixture
def harness():
    return VectorStoreHarness()


@pytest.fixture
def scheduled_harness():
    return VectorStoreHarness(
        rds_scheduler=RdsScheduler(
            restored_cron="0 8 * * MON-FRI",
            stop_cron="0 20 * * MON-FRI",
        )
    )


def _joined_text(value) -> str:
    """Render an Fn::Join value as text, with each reference as ``<ref>``."""
    if isinstance(value, str):
        return value
    delimiter, parts = value["Fn::Join"]
    return delimiter.join(part if isinstance(part, str) else "<ref>" for part in parts)


@pytest.fixture
def schedule_payload():
    """Decode a schedule's Target.Input into the JSON object it will send."""

    def decode(schedule: dict) -> dict:
        return json.loads(_joined_text(schedule["Properties"]["Target"]["Input"]))

    return decode
