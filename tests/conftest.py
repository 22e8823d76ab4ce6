import os
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient

# Set test environment variables BEFORE importing app modules

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["S3_BUCKET"] = "photo-storage"
os.environ["EXTERNAL_ENDPOINT"] = "http://localhost:9000"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of a real MinIO
os.environ.pop("AWS_ENDPOINT_URL", None)

from photo_gallery.main import app
from photo_gallery.storage.s3 import S3Service


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def s3_service(aws_credentials):
    """S3Service against a moto bucket."""
    with mock_aws():
        service = S3Service()
        service.ensure_bucket()
        yield service


@pytest.fixture(scope="function")
def test_client(aws_credentials):
    with mock_aws():
        # Lifespan creates the bucket and starts the recovery scan
        with TestClient(app) as client:
            assert app.state.index.wait_ready(5)
            yield client
