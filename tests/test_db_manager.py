import pytest

from trackdb.db_manager import (
    CatalogExistsError,
    CatalogNotFoundError,
    DatabaseManager,
    NotACatalogError,
    is_database,
)

TABLES = (
    "artists", "genres", "albums", "songs", "playlists",
    "artist_relations", "genre_relations", "playlist_relations",
)


def test_create_makes_empty_schema(get_db_path):
    db = DatabaseManager.create(get_db_path)

    assert is_database(get_db_path)
    for table in TABLES:
        assert db.count_rows(table) == 0


def test_create_makes_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "catalog"
    DatabaseManager.create(str(path))

    assert is_database(str(path))


def test_create_refuses_existing_catalog(get_db_path):
    DatabaseManager.create(get_db_path)

    with pytest.raises(CatalogExistsError, match="already present"):
        DatabaseManager.create(get_db_path)


def test_create_refuses_other_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("not a database")

    with pytest.raises(CatalogExistsError, match="not a database"):
        DatabaseManager.create(str(path))
    assert path.read_text() == "not a database"


def test_open_missing(tmp_path):
    with pytest.raises(CatalogNotFoundError):
        DatabaseManager.open(str(tmp_path / "missing.db"))


@pytest.mark.parametrize("content", [b"", b"SQLite format 2\x00", b"hello world, this is a text file"])
def test_open_rejects_files_without_header(tmp_path, content):
    path = tmp_path / "catalog.db"
    path.write_bytes(content)

    with pytest.raises(NotACatalogError):
        DatabaseManager.open(str(path))


def test_open_existing(get_db_path):
    DatabaseManager.create(get_db_path)
    db = DatabaseManager.open(get_db_path)

    assert db.count_rows("songs") == 0


def test_session_commits(get_db_path):
    db = DatabaseManager.create(get_db_path)
    with db.session() as cursor:
        cursor.execute("INSERT INTO genres (genre_name) VALUES (?)", ("Jazz", ))

    assert db.count_rows("genres") == 1


def test_session_rolls_back_on_error(get_db_path):
    db = DatabaseManager.create(get_db_path)
    with pytest.raises(RuntimeError):
        with db.session() as cursor:
            cursor.execute("INSERT INTO genres (genre_name) VALUES (?)", ("Jazz", ))
            raise RuntimeError("boom")

    assert db.count_rows("genres") == 0
