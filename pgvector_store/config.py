"""
Deployment settings for the pgvector store

Settings are plain dataclasses validated on construction, so bad values stop
`cdk synth` before any construct is created. `StoreSettings.from_context`
reads them from CDK context (cdk.json or `cdk deploy -c key=value`).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .errors import InvalidCapacityError, VectorStoreConfigError
from .scheduling.cron import RdsScheduler

logger = logging.getLogger(__name__)

DB_NAME = "postgres"
DEFAULT_ENGINE_VERSION = "15.3"

# Aurora Serverless v2 limits
MIN_ACU = 0.0
MAX_ACU = 256.0
MAX_READERS = 15


def _as_bool(value: Any, key: str) -> bool:
    # -c overrides arrive as strings
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise VectorStoreConfigError(f"Context value '{key}' must be true or false, got {value!r}")


@dataclass(frozen=True)
class ClusterSettings:
    """Engine and capacity of the Aurora cluster."""

    engine_version: str = DEFAULT_ENGINE_VERSION
    min_capacity: float = 0.5
    max_capacity: float = 5.0
    reader_count: int = 0
    database_name: str = DB_NAME

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        for name, value in (("min_capacity", self.min_capacity), ("max_capacity", self.max_capacity)):
            if value < MIN_ACU or value > MAX_ACU:
                raise InvalidCapacityError(
                    f"{name} must be between {MIN_ACU} and {MAX_ACU} ACU, got {value}"
                )
            if (value * 2) != int(value * 2):
                raise InvalidCapacityError(f"{name} must be a multiple of 0.5 ACU, got {value}")
        if self.min_capacity > self.max_capacity:
            raise InvalidCapacityError(
                f"min_capacity ({self.min_capacity}) is greater than max_capacity ({self.max_capacity})"
            )
        if self.max_capacity == 0:
            raise InvalidCapacityError("max_capacity must be at least 0.5 ACU")
        if self.reader_count < 0 or self.reader_count > MAX_READERS:
            raise VectorStoreConfigError(
                f"reader_count must be between 0 and {MAX_READERS}, got {self.reader_count}"
            )
        if not self.database_name:
            raise VectorStoreConfigError("database_name must not be empty")
        parts = self.engine_version.split(".")
        if len(parts) < 2 or not all(part.isdigit() for part in parts):
            raise VectorStoreConfigError(
                f"engine_version must look like '15.3', got '{self.engine_version}'"
            )

    @property
    def engine_major_version(self) -> str:
        return self.engine_version.split(".")[0]

    @classmethod
    def from_context(cls, value: Optional[Mapping[str, Any]]) -> "ClusterSettings":
        if not value:
            return cls()
        try:
            min_capacity = float(value.get("minCapacity", 0.5))
            max_capacity = float(value.get("maxCapacity", 5.0))
            reader_count = int(value.get("readerCount", 0))
        except (TypeError, ValueError) as e:
            raise VectorStoreConfigError(f"Invalid vectorStore context: {e}") from e

        return cls(
            engine_version=str(value.get("engineVersion", DEFAULT_ENGINE_VERSION)),
            min_capacity=min_capacity,
            max_capacity=max_capacity,
            reader_count=reader_count,
            database_name=str(value.get("databaseName", DB_NAME)),
        )


@dataclass(frozen=True)
class StoreSettings:
    """Inbound configuration of the vector store."""

    db_encryption: bool = True
    rds_scheduler: RdsScheduler = field(default_factory=RdsScheduler)
    cluster: ClusterSettings = field(default_factory=ClusterSettings)
    inline_password: bool = False

    @classmethod
    def from_context(cls, node) -> "StoreSettings":
        """Read settings from the CDK context of `node`."""
        db_encryption = node.try_get_context("dbEncryption")
        inline_password = node.try_get_context("inlineDbPassword")

        settings = cls(
            db_encryption=True if db_encryption is None else _as_bool(db_encryption, "dbEncryption"),
            rds_scheduler=RdsScheduler.from_context(node.try_get_context("rdsScheduler")),
            cluster=ClusterSettings.from_context(node.try_get_context("vectorStore")),
            inline_password=False if inline_password is None else _as_bool(inline_password, "inlineDbPassword"),
        )

        logger.debug(
            "Vector store settings: encryption=%s scheduler=%s capacity=%s-%s readers=%s",
            settings.db_encryption,
            settings.rds_scheduler.has_cron(),
            settings.cluster.min_capacity,
            settings.cluster.max_capacity,
            settings.cluster.reader_count,
        )
        return settings
