import pytest

from backlog_sync.api import BacklogAPI
from backlog_sync.config import Settings

from .fakes import FakeSession


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_key="secret-key",
        space_id="example",
        host="backlog.com",
        page_size=100,
        base_dir=str(tmp_path),
        chunk_size=4,
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def backlog_api(settings, fake_session):
    return BacklogAPI(settings, session=fake_session)
