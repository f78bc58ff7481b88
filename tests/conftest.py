from tests.fixtures.aws_fixtures import aws_credentials, mocked_aws, s3_client  # noqa: F401
from tests.fixtures.storage_fixtures import (  # noqa: F401
    memory_storage,
    png_bytes,
    s3_storage,
    service,
    storage,
)
from tests.fixtures.app_fixtures import auth, client, other_auth, settings  # noqa: F401
