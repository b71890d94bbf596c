import os
import sqlite3
import logging

from contextlib import closing, contextmanager
from typing import Iterator

logger = logging.getLogger('db_manager')

# See https://www.sqlite.org/fileformat.html
SQLITE_HEADER = b"SQLite format 3\x00"
SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'schema.sql')


class CatalogError(Exception):
    """A catalog file can't be used for the requested command"""

class CatalogExistsError(CatalogError):
    pass

class CatalogNotFoundError(CatalogError):
    pass

class NotACatalogError(CatalogError):
    pass


def is_database(path: str) -> bool:
    """Only checks for the 16-byte header every SQLite 3 database starts with"""
    with open(path, 'rb') as fp:
        return fp.read(len(SQLITE_HEADER)) == SQLITE_HEADER


class DatabaseManager:
    """
    Owns the location of a catalog file. Every statement runs in its own
    short-lived session, there is no connection kept between operations.
    """

    def __init__(self, db_path: str) -> None:
        self.filename = db_path

    @classmethod
    def create(cls, db_path: str, schema_path: str = SCHEMA_PATH) -> "DatabaseManager":
        """Create a new catalog at db_path. Fails if any file is already there."""
        if os.path.exists(db_path):
            if os.path.isfile(db_path) and is_database(db_path):
                raise CatalogExistsError(f"Database already present at {db_path}. Use the \"add\" command instead.")
            raise CatalogExistsError(f"A file is already present at {db_path}, and it is not a database.")

        parent = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(parent, exist_ok=True)

        db = cls(db_path)
        db.executescript(schema_path)
        return db

    @classmethod
    def open(cls, db_path: str) -> "DatabaseManager":
        """Get a handle on an existing catalog"""
        if not os.path.exists(db_path):
            raise CatalogNotFoundError(f"File {db_path} does not exist. Did you mean to use \"init\" instead?")
        if not os.path.isfile(db_path) or not is_database(db_path):
            raise NotACatalogError(f"File {db_path} is not an SQLite 3 database.")
        return cls(db_path)

    def connect(self) -> sqlite3.Connection:
        try:
            connection = sqlite3.connect(self.filename)
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            logger.debug(f"Connected to db {self.filename}")
            return connection
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to db: {e}")
            raise

    @contextmanager
    def session(self) -> Iterator[sqlite3.Cursor]:
        """Open a connection, yield a cursor, commit on success and always close"""
        with closing(self.connect()) as connection:
            with connection:
                yield connection.cursor()

    def executescript(self, path: str):
        try:
            with open(path, 'r') as fp:
                script = fp.read()
            with self.session() as cursor:
                cursor.executescript(script)
            logger.info(f"Executed script at {path}")
        except Exception as e:
            logger.error(f"Failed to execute script: {e}")
            raise

    def count_rows(self, table: str) -> int:
        with self.session() as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {table}")
            return cursor.fetchone()[0]
