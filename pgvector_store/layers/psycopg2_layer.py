"""
PostgreSQL Lambda Layer Construct

Lambda layer containing psycopg2-binary for the vector store setup function.
Populate it with `python setup_dependencies.py` before `cdk deploy`.
"""

import os
from constructs import Construct
from aws_cdk import (
    aws_lambda as _lambda,
    Tags
)

LAYER_DIR = os.path.join(os.path.dirname(__file__), "postgresql")


class DependenciesLayerConstruct(Construct):
    """
    Construct for the Lambda layer holding the PostgreSQL driver.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self._create_layer()

    def _create_layer(self) -> None:
        """Create the layer from the postgresql directory."""
        self._ensure_layer_structure(LAYER_DIR)

        self.layer = _lambda.LayerVersion(
            self,
            "PostgreSQLLayer",
            code=_lambda.Code.from_asset(LAYER_DIR, exclude=["requirements.txt"]),
            compatible_runtimes=[
                _lambda.Runtime.PYTHON_3_11,
                _lambda.Runtime.PYTHON_3_12
            ],
            description="psycopg2 for the pgvector store setup function"
        )

        Tags.of(self.layer).add("Component", "Layer")

    def _ensure_layer_structure(self, layer_dir: str) -> None:
        """Ensure the layer has the minimum required structure."""
        python_dir = os.path.join(layer_dir, "python")
        os.makedirs(python_dir, exist_ok=True)

        # Asset directories must not be empty
        placeholder_file = os.path.join(python_dir, "__init__.py")
        if not os.path.exists(placeholder_file):
            with open(placeholder_file, 'w') as f:
                f.write("# Placeholder file for Lambda layer\n")

    def get_layer(self) -> _lambda.LayerVersion:
        """Return the Lambda layer instance."""
        return self.layer
