import json

import psycopg2
import pytest

from pgvector_store.database.setup_handler import index


class FakeCursor:
    def __init__(self, extension_exists):
        self.extension_exists = extension_exists
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append(sql)

    def fetchone(self):
        return (self.extension_exists,)

    def __enter__(self):
        return self

    def __exit__(self, *_args):
        return False


class FakeConnection:
    def __init__(self, extension_exists=False):
        self.cursor_obj = FakeCursor(extension_exists)
        self.committed = False
        self.closed = False

    def cursor(self):
        return self.cursor_obj

    def __enter__(self):
        return self

    def __exit__(self, exc_type, *_args):
        self.committed = exc_type is None
        return False

    def close(self):
        self.closed = True


class FakeResponse:
    status = 200


class FakeHttp:
    def __init__(self):
        self.requests = []

    def request(self, method, url, body=None, headers=None):
        self.requests.append({"method": method, "url": url, "body": json.loads(body)})
        return FakeResponse()


class FakeContext:
    log_stream_name = "2024/01/01/[$LATEST]abc"


class FakeSecrets:
    def __init__(self, secret):
        self.secret = secret
        self.calls = []

    def get_secret_value(self, SecretId):
        self.calls.append(SecretId)
        return {"SecretString": json.dumps(self.secret)}


def _event(request_type="Create", host="cluster.example.internal", **extra):
    event = {
        "RequestType": request_type,
        "ResponseURL": "https://cloudformation-custom-resource-response.example/abc",
        "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/Test/1",
        "RequestId": "req-1",
        "LogicalResourceId": "VectorStoreSetupCustomResourceSetup",
        "ResourceType": "Custom::SetupVectorStore",
        "ResourceProperties": {"ServiceToken": "arn:aws:lambda:fn", "id": host},
    }
    event.update(extra)
    return event


@pytest.fixture
def http(monkeypatch):
    fake = FakeHttp()
    monkeypatch.setattr(index, "http", fake)
    return fake


@pytest.fixture
def db_env(monkeypatch):
    monkeypatch.setenv("DB_HOST", "cluster.example.internal")
    monkeypatch.setenv("DB_PORT", "5432")
    monkeypatch.setenv("DB_NAME", "postgres")
    monkeypatch.setenv("DB_USER", "postgres")
    monkeypatch.setenv("DB_PASSWORD", "inline-secret")
    monkeypatch.setenv("DB_CLUSTER_IDENTIFIER", "vector-store-cluster")
    monkeypatch.delenv("DB_SECRET_ARN", raising=False)


@pytest.fixture
def connect(monkeypatch):
    calls = []
    connection = FakeConnection()

    def fake_connect(**kwargs):
        calls.append(kwargs)
        return connection

    monkeypatch.setattr(index.psycopg2, "connect", fake_connect)
    return calls, connection


def test_create_enables_extension_and_reports_success(http, db_env, connect):
    calls, connection = connect

    result = index.handler(_event("Create"), FakeContext())

    assert result["status"] == "SUCCESS"
    assert result["data"]["Created"] is True
    assert calls[0]["host"] == "cluster.example.internal"
    assert calls[0]["port"] == 5432
    assert calls[0]["dbname"] == "postgres"
    assert calls[0]["password"] == "inline-secret"
    assert "CREATE EXTENSION IF NOT EXISTS vector;" in connection.cursor_obj.executed
    assert connection.committed and connection.closed

    sent = http.requests[0]
    assert sent["method"] == "PUT"
    assert sent["body"]["Status"] == "SUCCESS"
    assert sent["body"]["PhysicalResourceId"] == "setup-vector-store-cluster.example.internal"
    assert sent["body"]["RequestId"] == "req-1"


def test_rerun_on_prepared_database_is_a_no_op(http, db_env, monkeypatch):
    connection = FakeConnection(extension_exists=True)
    monkeypatch.setattr(index.psycopg2, "connect", lambda **_kwargs: connection)

    result = index.handler(_event("Update", PhysicalResourceId="setup-vector-store-old"), FakeContext())

    assert result["status"] == "SUCCESS"
    assert result["data"]["Created"] is False
    assert not any("CREATE EXTENSION" in sql for sql in connection.cursor_obj.executed)
    assert result["physicalResourceId"] == "setup-vector-store-cluster.example.internal"


def test_password_is_resolved_from_secret_when_not_inlined(http, db_env, connect, monkeypatch):
    calls, _ = connect
    monkeypatch.delenv("DB_PASSWORD")
    monkeypatch.setenv("DB_SECRET_ARN", "arn:aws:secretsmanager:us-east-1:123456789012:secret:db")
    secrets = FakeSecrets({"username": "postgres", "password": "from-secret"})
    monkeypatch.setattr(index, "get_secrets_client", lambda: secrets)

    result = index.handler(_event("Create"), FakeContext())

    assert result["status"] == "SUCCESS"
    assert calls[0]["password"] == "from-secret"
    assert secrets.calls == ["arn:aws:secretsmanager:us-east-1:123456789012:secret:db"]


def test_delete_preserves_database(http, db_env, monkeypatch):
    def fail_connect(**_kwargs):
        raise AssertionError("delete must not touch the database")

    monkeypatch.setattr(index.psycopg2, "connect", fail_connect)

    result = index.handler(
        _event("Delete", PhysicalResourceId="setup-vector-store-cluster.example.internal"),
        FakeContext(),
    )

    assert result["status"] == "SUCCESS"
    assert http.requests[0]["body"]["PhysicalResourceId"] == "setup-vector-store-cluster.example.internal"


def test_connection_failure_reports_failed(http, db_env, monkeypatch):
    def refuse(**_kwargs):
        raise psycopg2.OperationalError("could not connect to server")

    monkeypatch.setattr(index.psycopg2, "connect", refuse)

    result = index.handler(_event("Create"), FakeContext())

    assert result["status"] == "FAILED"
    assert http.requests[0]["body"]["Status"] == "FAILED"
    assert "could not connect" in http.requests[0]["body"]["Data"]["Error"]


def test_missing_environment_reports_failed(http, monkeypatch):
    for name in ("DB_HOST", "DB_USER", "DB_NAME", "DB_PASSWORD", "DB_SECRET_ARN"):
        monkeypatch.delenv(name, raising=False)

    result = index.handler(_event("Create"), FakeContext())

    assert result["status"] == "FAILED"
    assert "DB_HOST" in result["data"]["Error"]


def test_missing_password_source_reports_failed(http, db_env, monkeypatch):
    monkeypatch.delenv("DB_PASSWORD")

    result = index.handler(_event("Create"), FakeContext())

    assert result["status"] == "FAILED"
    assert "DB_SECRET_ARN" in result["data"]["Error"]


def test_unknown_request_type_reports_failed(http, db_env):
    result = index.handler(_event("Rollback"), FakeContext())

    assert result["status"] == "FAILED"
    assert http.requests[0]["body"]["Status"] == "FAILED"


def test_response_delivery_errors_propagate(db_env, connect, monkeypatch):
    class BrokenHttp:
        def request(self, *_args, **_kwargs):
            raise ConnectionError("network unreachable")

    monkeypatch.setattr(index, "http", BrokenHttp())

    with pytest.raises(ConnectionError):
        index.handler(_event("Create"), FakeContext())
