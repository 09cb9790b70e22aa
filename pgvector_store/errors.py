"""Declaration-time errors for the pgvector store constructs."""


class VectorStoreConfigError(ValueError):
    """Raised when the vector store is configured with values that cannot be deployed."""


class InvalidCronExpressionError(VectorStoreConfigError):
    """Raised when a start/stop schedule expression does not parse."""


class InvalidCapacityError(VectorStoreConfigError):
    """Raised when the Serverless v2 scaling bounds are out of range."""
