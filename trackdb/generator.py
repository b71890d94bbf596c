import logging

from dataclasses import replace
from typing import Callable, Iterable, Iterator, List, Optional

from .catalog import CatalogStore
from .db_manager import DatabaseManager
from .metadata import MetadataManager, TagReadError
from .models import FileKind, RunResult, TrackMetadata
from .paths import PathTraversalError, canonical_path, classify, strip_extension
from .utils import format_seconds, unique_names

UNKNOWN = "Unknown"
ALBUM_ARTIST_SEPARATOR = ","

TagReader = Callable[[str], TrackMetadata]


def sanitize(metadata: TrackMetadata) -> TrackMetadata:
    """Fill in placeholders for missing tags so every song has an artist, album and genre"""
    performers = unique_names(metadata.performers) or [UNKNOWN]
    album_artists = unique_names(metadata.album_artists) or performers
    genres = unique_names(metadata.genres) or [UNKNOWN]

    return replace(
        metadata,
        performers=performers,
        album=metadata.album.strip() or UNKNOWN,
        album_artists=album_artists,
        genres=genres,
        disk_count=metadata.disk_count or 1,
        diskno=metadata.diskno or 1,
    )


class CatalogGenerator:
    """
    Drives add, remove and prune runs against a catalog. Meant to be the only
    writer of its catalog: artist, genre, album and song deduplication is a
    lookup followed by an insert.
    """

    def __init__(self, store: CatalogStore, tag_reader: Optional[TagReader] = None,
                 portable: bool = False, root: Optional[str] = None) -> None:
        self.store = store
        self.tag_reader = tag_reader or MetadataManager.get_metadata
        self.portable = portable
        self.root = root
        self.__logger = logging.getLogger('generator')

    @classmethod
    def create(cls, db_path: str, **kwargs) -> "CatalogGenerator":
        """Initialise a new catalog at db_path"""
        return cls(CatalogStore(DatabaseManager.create(db_path)), **kwargs)

    @classmethod
    def open(cls, db_path: str, **kwargs) -> "CatalogGenerator":
        """Use the existing catalog at db_path"""
        return cls(CatalogStore(DatabaseManager.open(db_path)), **kwargs)

    def _canonical(self, path: str) -> str:
        return canonical_path(path, root=self.root, portable=self.portable)

    def process_files(self, files: Iterable[str]) -> RunResult:
        """
        Add audio and playlist files to the catalog. All audio files go in
        first, so that playlists can link to songs listed after them.
        """
        result = RunResult()
        playlists: List[str] = []

        for path in files:
            kind = classify(path)
            if kind is FileKind.AUDIO:
                try:
                    self.process_song(path, result)
                except (PathTraversalError, TagReadError) as e:
                    self.__logger.error(str(e))
                    result.fail(path, str(e))
            elif kind is FileKind.PLAYLIST:
                playlists.append(path)
            else:
                self.__logger.error(f"Unknown file {path}")
                result.fail(path, "unknown file type")

        for path in playlists:
            try:
                self.process_playlist(path, result)
            except (OSError, UnicodeDecodeError) as e:
                self.__logger.error(f"Failed to read playlist {path}: {e}")
                result.fail(path, str(e))

        return result

    def process_song(self, path: str, result: RunResult) -> None:
        # A rejected path must leave no rows behind
        filepath = self._canonical(path)
        metadata = sanitize(self.tag_reader(path))

        for artist in metadata.performers:
            if self.store.has_artist(artist):
                self.__logger.info(f"Artist {artist} already in catalog. Skipping")
            else:
                self.__logger.info(f"New artist {artist} added to catalog")
                self.store.add_artist(artist)
                result.artists_added += 1

        for genre in metadata.genres:
            if self.store.has_genre(genre):
                self.__logger.info(f"Genre {genre} already in catalog. Skipping")
            else:
                self.__logger.info(f"New genre {genre} added to catalog")
                self.store.add_genre(genre)
                result.genres_added += 1

        artist_key = ALBUM_ARTIST_SEPARATOR.join(metadata.album_artists)

        if self.store.has_album(metadata.album, artist_key, metadata.year):
            self.__logger.info(f"Album {metadata.album} already in catalog. Skipping")
        else:
            if not self.store.has_artist(artist_key):
                self.__logger.info(f"New album artist {artist_key} added to catalog")
                self.store.add_artist(artist_key)
                result.artists_added += 1
            self.__logger.info(f"New album {metadata.album} added to catalog")
            self.store.add_album(metadata.album, artist_key, metadata.year,
                                 metadata.disk_count, metadata.track_count)
            result.albums_added += 1

        if self.store.has_song(filepath):
            self.__logger.info(f"Song {metadata.title} ({path}) already in catalog. Skipping")
            return

        length = int(round(metadata.duration.total_seconds()))
        self.store.add_song(metadata.title, metadata.performers, metadata.album, artist_key,
                            metadata.genres, length, metadata.diskno, metadata.trackno,
                            metadata.year, filepath)
        self.__logger.info(f"New song {metadata.title} ({path}, {format_seconds(length)}) added to catalog")
        result.songs_added += 1

    def _playlist_entries(self, path: str) -> Iterator[str]:
        with open(path, 'r', encoding='utf-8') as fp:
            lines = [line.strip() for line in fp]

        for line in lines:
            if not line or line.startswith('#'):
                continue
            try:
                yield self._canonical(line)
            except PathTraversalError as e:
                self.__logger.warning(f"Skipping entry in playlist {path}: {e}")

    def process_playlist(self, path: str, result: RunResult) -> None:
        name = strip_extension(path)
        if self.store.has_playlist(name):
            self.__logger.error(f"Playlist {name} already exists. Skipping")
            return

        entries = list(self._playlist_entries(path))
        self.__logger.info(f"Making new playlist {name} from {path}")
        self.store.add_playlist(name, entries)
        result.playlists_added += 1

    def remove_files(self, files: Iterable[str]) -> RunResult:
        result = RunResult()

        for path in files:
            kind = classify(path)
            if kind is FileKind.AUDIO:
                try:
                    filepath = self._canonical(path)
                except PathTraversalError as e:
                    self.__logger.error(str(e))
                    result.fail(path, str(e))
                    continue

                if self.store.remove_song(filepath):
                    self.__logger.info(f"Removed song {path} from catalog")
                    result.songs_removed += 1
                else:
                    self.__logger.warning(f"Song from file {filepath} not in catalog. Ignoring")
            elif kind is FileKind.PLAYLIST:
                name = strip_extension(path)
                if self.store.remove_playlist(name):
                    self.__logger.info(f"Removed playlist {name}")
                    result.playlists_removed += 1
                else:
                    self.__logger.warning(f"Playlist {name} from file {path} not in catalog. Ignoring")
            else:
                self.__logger.error(f"Unknown file {path}")
                result.fail(path, "unknown file type")

        return result

    def prune(self) -> RunResult:
        """
        Delete albums without songs, then artists without songs, then genres
        without songs. Albums go first so that the artists they credit are free
        to go in the same run.
        """
        result = RunResult()

        for album_id in self.store.unused_albums():
            self.__logger.info(f"Pruning unused album {self.store.get_album_name(album_id)} from catalog")
            self.store.remove_album(album_id)
            result.albums_pruned += 1

        for artist_id in self.store.unused_artists():
            name = self.store.get_artist_name(artist_id)
            if self.store.artist_has_albums(artist_id):
                self.__logger.info(f"Keeping artist {name}, still credited on an album")
                continue
            self.__logger.info(f"Pruning unused artist {name} from catalog")
            self.store.remove_artist(artist_id)
            result.artists_pruned += 1

        for genre_id in self.store.unused_genres():
            self.__logger.info(f"Pruning unused genre {self.store.get_genre_name(genre_id)} from catalog")
            self.store.remove_genre(genre_id)
            result.genres_pruned += 1

        return result
