import os
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient

# Set test environment variable BEFORE importing app modules
os.environ["TESTING"] = "true"

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["S3_BUCKET"] = "image-gallery-bucket"
os.environ["LIKES_TABLE"] = "LikesTable"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)
os.environ.pop("SIGNING_MODE", None)

from app.main import app
from app.settings import get_settings, load_settings
from app.storage.s3 import S3Service
from app.storage.dynamodb import DynamoDBService

BUCKET = "image-gallery-bucket"


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def settings(aws_credentials):
    return load_settings(_env_file=None)


@pytest.fixture(scope="function")
def aws(aws_credentials):
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def s3_service(aws, settings):
    service = S3Service(settings)
    service.ensure_bucket()
    return service


@pytest.fixture(scope="function")
def db_service(aws, settings):
    service = DynamoDBService(settings)
    service.ensure_table()
    return service


@pytest.fixture(scope="function")
def test_client(aws_credentials):
    # Settings are cached per process; start every client from the test environment
    get_settings.cache_clear()

    with mock_aws():
        # The lifespan creates the bucket and the likes table inside the mock
        with TestClient(app) as client:
            yield client

    get_settings.cache_clear()
