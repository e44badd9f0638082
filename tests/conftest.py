import pytest

from database import LibraryDatabase
from settings import Settings


@pytest.fixture
def settings():
    # low bcrypt cost keeps seeding fast
    return Settings(bcrypt_rounds=4)


@pytest.fixture
def db(tmp_path, settings):
    # each test gets its own data directory
    return LibraryDatabase(data_dir=tmp_path, settings=settings)


@pytest.fixture
def reload(tmp_path, settings):
    def _reload():
        return LibraryDatabase(data_dir=tmp_path, settings=settings)
    return _reload
