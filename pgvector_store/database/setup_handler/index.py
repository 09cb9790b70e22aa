"""
Custom Resource Lambda for vector store setup

Handles the CloudFormation custom resource lifecycle for
Custom::SetupVectorStore. Create and Update enable the pgvector extension on
the cluster; both are safe to repeat. Delete leaves the database untouched.

Connection parameters come from the function environment. The password is
read from DB_PASSWORD when the stack inlines it, otherwise it is fetched from
the secret named by DB_SECRET_ARN at invocation time.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import boto3
import psycopg2
import urllib3
from botocore.exceptions import ClientError

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

http = urllib3.PoolManager()

_secrets_client = None


def get_secrets_client():
    global _secrets_client
    if _secrets_client is None:
        _secrets_client = boto3.client("secretsmanager")
    return _secrets_client


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for CloudFormation custom resource lifecycle events.

    Args:
        event: CloudFormation custom resource event
        context: Lambda context object

    Returns:
        Summary of the response sent to CloudFormation
    """
    request_type = event.get("RequestType")
    properties = event.get("ResourceProperties", {})
    logger.info(
        "Received %s request for %s (id=%s)",
        request_type,
        event.get("LogicalResourceId"),
        properties.get("id"),
    )

    physical_resource_id = event.get("PhysicalResourceId") or physical_id_for(properties)
    response_data: Dict[str, Any] = {}

    try:
        if request_type in ("Create", "Update"):
            # An update only happens when the endpoint changed, i.e. a new cluster
            physical_resource_id = physical_id_for(properties)
            response_data = setup_vector_store(get_connection_parameters())
            status = "SUCCESS"

        elif request_type == "Delete":
            logger.info("Processing delete request - preserving database and extension")
            response_data = {"Message": "Delete completed - database preserved"}
            status = "SUCCESS"

        else:
            logger.error("Unknown request type: %s", request_type)
            status = "FAILED"
            response_data = {"Error": f"Unknown request type: {request_type}"}

    except Exception as e:
        logger.error("Error processing request: %s", e, exc_info=True)
        status = "FAILED"
        response_data = {"Error": str(e)}

    send_response(
        event=event,
        context=context,
        response_status=status,
        response_data=response_data,
        physical_resource_id=physical_resource_id,
    )

    return {
        "status": status,
        "physicalResourceId": physical_resource_id,
        "data": response_data,
    }


def physical_id_for(properties: Dict[str, Any]) -> str:
    return f"setup-vector-store-{properties.get('id', 'unknown')}"


def get_database_password() -> str:
    """Return the master password, resolving the secret if it was not inlined."""
    password = os.environ.get("DB_PASSWORD")
    if password:
        return password

    secret_arn = os.environ.get("DB_SECRET_ARN")
    if not secret_arn:
        raise ValueError("Either DB_PASSWORD or DB_SECRET_ARN must be set")

    try:
        logger.info("Retrieving database password from Secrets Manager")
        response = get_secrets_client().get_secret_value(SecretId=secret_arn)
        return json.loads(response["SecretString"])["password"]
    except ClientError as e:
        logger.error("Error retrieving database credentials: %s", e)
        raise
    except (KeyError, json.JSONDecodeError) as e:
        logger.error("Error parsing database credentials: %s", e)
        raise


def get_connection_parameters() -> Dict[str, Any]:
    """Build psycopg2 connection arguments from the function environment."""
    missing = [
        name for name in ("DB_HOST", "DB_USER", "DB_NAME") if not os.environ.get(name)
    ]
    if missing:
        raise ValueError(f"Missing environment variables: {', '.join(missing)}")

    return {
        "host": os.environ["DB_HOST"],
        "port": int(os.environ.get("DB_PORT", "5432")),
        "dbname": os.environ["DB_NAME"],
        "user": os.environ["DB_USER"],
        "password": get_database_password(),
        "connect_timeout": 30,
    }


def setup_vector_store(params: Dict[str, Any]) -> Dict[str, Any]:
    """Enable the pgvector extension; a no-op when it is already enabled."""
    logger.info(
        "Connecting to %s:%s/%s (cluster %s)",
        params["host"],
        params["port"],
        params["dbname"],
        os.environ.get("DB_CLUSTER_IDENTIFIER", "unknown"),
    )
    connection = psycopg2.connect(**params)

    try:
        with connection:
            with connection.cursor() as cursor:
                created = enable_pgvector_extension(cursor)
    finally:
        connection.close()

    return {
        "Message": "pgvector extension enabled",
        "ExtensionEnabled": "vector",
        "Created": created,
    }


def enable_pgvector_extension(cursor) -> bool:
    """Create the vector extension if missing. Returns True when it was created."""
    cursor.execute("SELECT EXISTS (SELECT 1 FROM pg_extension WHERE extname = 'vector');")
    if cursor.fetchone()[0]:
        logger.info("pgvector extension already exists")
        return False

    cursor.execute("CREATE EXTENSION IF NOT EXISTS vector;")
    logger.info("pgvector extension enabled successfully")
    return True


def send_response(
    event: Dict[str, Any],
    context: Any,
    response_status: str,
    response_data: Dict[str, Any],
    physical_resource_id: str,
    reason: Optional[str] = None,
) -> None:
    """
    Send response to CloudFormation.

    Args:
        event: CloudFormation event
        context: Lambda context
        response_status: SUCCESS or FAILED
        response_data: Response data dictionary
        physical_resource_id: Physical resource ID
        reason: Override for the reason shown in the stack events
    """
    response_body = {
        "Status": response_status,
        "Reason": reason or f"See CloudWatch Log Stream: {context.log_stream_name}",
        "PhysicalResourceId": physical_resource_id,
        "StackId": event["StackId"],
        "RequestId": event["RequestId"],
        "LogicalResourceId": event["LogicalResourceId"],
        "NoEcho": False,
        "Data": response_data,
    }

    json_response_body = json.dumps(response_body)

    logger.info("Sending %s response to CloudFormation", response_status)

    headers = {
        "content-type": "",
        "content-length": str(len(json_response_body)),
    }

    try:
        response = http.request(
            "PUT",
            event["ResponseURL"],
            body=json_response_body,
            headers=headers,
        )
        logger.info("CloudFormation response sent. Status: %s", response.status)

    except Exception as e:
        logger.error("Error sending response to CloudFormation: %s", e)
        raise
