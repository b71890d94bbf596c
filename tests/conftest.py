import os
import logging
import pytest

from tests.util import LibraryManager
from trackdb.catalog import CatalogStore
from trackdb.db_manager import DatabaseManager
from trackdb.generator import CatalogGenerator


@pytest.fixture(autouse=True)
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture(scope="function")
def get_library_manager(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return LibraryManager(os.getcwd())


@pytest.fixture(scope="function")
def get_db_path(tmp_path):
    return str(tmp_path / "catalog.db")


@pytest.fixture(scope="function")
def get_store(get_db_path):
    return CatalogStore(DatabaseManager.create(get_db_path))


@pytest.fixture(scope="function")
def get_generator(get_library_manager, get_store):
    return CatalogGenerator(get_store, tag_reader=get_library_manager.read_tags)
