import logging

from typing import Iterable, List, Optional, Sequence

from .db_manager import DatabaseManager
from .models import AlbumRow, ArtistRow, GenreRow, PlaylistRow, SongRow


class MissingEntityError(LookupError):
    """A song refers to an artist, genre or album that isn't in the catalog"""


class CatalogStore:
    """
    Lookup, insert and delete primitives over the catalog tables.

    Every method opens its own session and commits before returning. Lookups
    and inserts are separate calls, so deduplication relies on a single
    writer driving the store (see CatalogGenerator).
    """

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db
        self.__logger = logging.getLogger('catalog')

    def _fetch_value(self, query: str, params: Sequence = ()):
        with self.db.session() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
        return None if row is None else row[0]

    def _fetch_column(self, query: str, params: Sequence = ()) -> List:
        with self.db.session() as cursor:
            cursor.execute(query, params)
            return [row[0] for row in cursor.fetchall()]

    def _fetch_rows(self, query: str, row_type) -> List:
        with self.db.session() as cursor:
            cursor.execute(query)
            return [row_type(*row) for row in cursor.fetchall()]

    def _insert(self, query: str, params: Sequence) -> int:
        with self.db.session() as cursor:
            cursor.execute(query, params)
            return cursor.lastrowid

    def _execute(self, query: str, params: Sequence = ()) -> None:
        with self.db.session() as cursor:
            cursor.execute(query, params)

    # Artists

    def has_artist(self, name: str) -> bool:
        return self.get_artist_id(name) is not None

    def get_artist_id(self, name: str) -> Optional[int]:
        return self._fetch_value("SELECT artist_id FROM artists WHERE artist_name = ?", (name, ))

    def get_artist_name(self, artist_id: int) -> Optional[str]:
        return self._fetch_value("SELECT artist_name FROM artists WHERE artist_id = ?", (artist_id, ))

    def add_artist(self, name: str) -> int:
        return self._insert("INSERT INTO artists (artist_name) VALUES (?)", (name, ))

    def remove_artist(self, artist_id: int) -> None:
        self._execute("DELETE FROM artists WHERE artist_id = ?", (artist_id, ))

    def unused_artists(self) -> List[int]:
        return self._fetch_column("""
            SELECT artist_id FROM artists
            WHERE artist_id NOT IN (SELECT DISTINCT artist_id FROM artist_relations)
        """)

    def artist_has_albums(self, artist_id: int) -> bool:
        return self._fetch_value("SELECT 1 FROM albums WHERE artist_id = ? LIMIT 1", (artist_id, )) is not None

    def artists(self) -> List[ArtistRow]:
        return self._fetch_rows("SELECT artist_id, artist_name FROM artists ORDER BY artist_id", ArtistRow)

    # Genres

    def has_genre(self, name: str) -> bool:
        return self.get_genre_id(name) is not None

    def get_genre_id(self, name: str) -> Optional[int]:
        return self._fetch_value("SELECT genre_id FROM genres WHERE genre_name = ?", (name, ))

    def get_genre_name(self, genre_id: int) -> Optional[str]:
        return self._fetch_value("SELECT genre_name FROM genres WHERE genre_id = ?", (genre_id, ))

    def add_genre(self, name: str) -> int:
        return self._insert("INSERT INTO genres (genre_name) VALUES (?)", (name, ))

    def remove_genre(self, genre_id: int) -> None:
        self._execute("DELETE FROM genres WHERE genre_id = ?", (genre_id, ))

    def unused_genres(self) -> List[int]:
        return self._fetch_column("""
            SELECT genre_id FROM genres
            WHERE genre_id NOT IN (SELECT DISTINCT genre_id FROM genre_relations)
        """)

    def genres(self) -> List[GenreRow]:
        return self._fetch_rows("SELECT genre_id, genre_name FROM genres ORDER BY genre_id", GenreRow)

    # Albums, keyed by (name, album-artist key, year)

    def has_album(self, name: str, artist_key: str, year: int) -> bool:
        return self.get_album_id(name, artist_key, year) is not None

    def get_album_id(self, name: str, artist_key: str, year: int) -> Optional[int]:
        artist_id = self.get_artist_id(artist_key)
        if artist_id is None:
            return None

        query = "SELECT album_id FROM albums WHERE album_name = ? AND artist_id = ? AND album_year = ?"
        return self._fetch_value(query, (name, artist_id, year))

    def get_album_name(self, album_id: int) -> Optional[str]:
        return self._fetch_value("SELECT album_name FROM albums WHERE album_id = ?", (album_id, ))

    def add_album(self, name: str, artist_key: str, year: int, disks: int, tracks: int) -> int:
        artist_id = self.get_artist_id(artist_key)
        if artist_id is None:
            raise MissingEntityError(f"Album artist {artist_key} is not in the catalog")

        query = """
            INSERT INTO albums (album_name, artist_id, album_year, album_disks, album_tracks)
                VALUES (?, ?, ?, ?, ?)
        """
        return self._insert(query, (name, artist_id, year, disks, tracks))

    def remove_album(self, album_id: int) -> None:
        self._execute("DELETE FROM albums WHERE album_id = ?", (album_id, ))

    def unused_albums(self) -> List[int]:
        return self._fetch_column("""
            SELECT album_id FROM albums
            WHERE album_id NOT IN (SELECT DISTINCT album_id FROM songs WHERE album_id IS NOT NULL)
        """)

    def albums(self) -> List[AlbumRow]:
        query = """
            SELECT album_id, artist_id, album_name, album_year, album_disks, album_tracks
            FROM albums ORDER BY album_id
        """
        return self._fetch_rows(query, AlbumRow)

    # Songs, keyed by canonical file path

    def has_song(self, filepath: str) -> bool:
        return self.get_song_id(filepath) is not None

    def get_song_id(self, filepath: str) -> Optional[int]:
        return self._fetch_value("SELECT song_id FROM songs WHERE song_filepath = ?", (filepath, ))

    def get_song_name(self, song_id: int) -> Optional[str]:
        return self._fetch_value("SELECT song_name FROM songs WHERE song_id = ?", (song_id, ))

    def add_song(self, title: str, performers: Sequence[str], album: str, artist_key: str,
                 genres: Sequence[str], length: int, diskno: int, trackno: int, year: int,
                 filepath: str) -> int:
        """
        Insert a song and link it to its performers and genres. Every name
        must already be in the catalog, otherwise MissingEntityError is raised
        and nothing is written.
        """
        artist_ids = [self.get_artist_id(name) for name in performers]
        genre_ids = [self.get_genre_id(name) for name in genres]
        album_id = self.get_album_id(album, artist_key, year)

        missing = [name for name, aid in zip(performers, artist_ids) if aid is None]
        missing += [name for name, gid in zip(genres, genre_ids) if gid is None]
        if album_id is None:
            missing.append(album)
        if missing:
            raise MissingEntityError(f"Cannot add {filepath}, not in catalog: {', '.join(missing)}")

        with self.db.session() as cursor:
            cursor.execute("""
                INSERT INTO songs (song_name, album_id, song_length, song_diskno, song_trackno, song_filepath)
                    VALUES (?, ?, ?, ?, ?, ?)
            """, (title, album_id, length, diskno, trackno, filepath))
            song_id = cursor.lastrowid

            cursor.executemany(
                "INSERT INTO artist_relations (artist_id, song_id) VALUES (?, ?)",
                [(artist_id, song_id) for artist_id in artist_ids]
            )
            cursor.executemany(
                "INSERT INTO genre_relations (genre_id, song_id) VALUES (?, ?)",
                [(genre_id, song_id) for genre_id in genre_ids]
            )

        return song_id

    def remove_song(self, filepath: str) -> bool:
        """Delete the song and every relation row pointing at it. False if it wasn't there."""
        song_id = self.get_song_id(filepath)
        if song_id is None:
            return False

        with self.db.session() as cursor:
            cursor.execute("DELETE FROM artist_relations WHERE song_id = ?", (song_id, ))
            cursor.execute("DELETE FROM genre_relations WHERE song_id = ?", (song_id, ))
            cursor.execute("DELETE FROM playlist_relations WHERE song_id = ?", (song_id, ))
            cursor.execute("DELETE FROM songs WHERE song_filepath = ?", (filepath, ))

        return True

    def songs(self) -> List[SongRow]:
        query = """
            SELECT song_id, album_id, song_name, song_length, song_diskno, song_trackno, song_filepath
            FROM songs ORDER BY song_id
        """
        return self._fetch_rows(query, SongRow)

    # Playlists

    def has_playlist(self, name: str) -> bool:
        return self.get_playlist_id(name) is not None

    def get_playlist_id(self, name: str) -> Optional[int]:
        return self._fetch_value("SELECT playlist_id FROM playlists WHERE playlist_name = ?", (name, ))

    def get_playlist_name(self, playlist_id: int) -> Optional[str]:
        return self._fetch_value("SELECT playlist_name FROM playlists WHERE playlist_id = ?", (playlist_id, ))

    def add_playlist(self, name: str, song_paths: Iterable[str]) -> int:
        """
        Insert a playlist and link every path that matches a song in the
        catalog. Paths without a song are skipped.
        """
        playlist_id = self._insert("INSERT INTO playlists (playlist_name) VALUES (?)", (name, ))

        for path in song_paths:
            song_id = self.get_song_id(path)
            if song_id is None:
                self.__logger.debug(f"No song at {path}, not adding it to playlist {name}")
                continue

            self._execute(
                "INSERT OR IGNORE INTO playlist_relations (playlist_id, song_id) VALUES (?, ?)",
                (playlist_id, song_id)
            )
            self.__logger.info(f"Added song at {path} to playlist {name}")

        return playlist_id

    def remove_playlist(self, name: str) -> bool:
        playlist_id = self.get_playlist_id(name)
        if playlist_id is None:
            return False

        with self.db.session() as cursor:
            cursor.execute("DELETE FROM playlist_relations WHERE playlist_id = ?", (playlist_id, ))
            cursor.execute("DELETE FROM playlists WHERE playlist_id = ?", (playlist_id, ))

        return True

    def playlist_song_ids(self, playlist_id: int) -> List[int]:
        query = "SELECT song_id FROM playlist_relations WHERE playlist_id = ? ORDER BY rowid"
        return self._fetch_column(query, (playlist_id, ))

    def playlists(self) -> List[PlaylistRow]:
        return self._fetch_rows("SELECT playlist_id, playlist_name FROM playlists ORDER BY playlist_id", PlaylistRow)
