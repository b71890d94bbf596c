import os

from datetime import timedelta
from typing import Dict, List, Sequence

from trackdb.metadata import TagReadError
from trackdb.models import TrackMetadata


class LibraryManager:
    """
    Creates placeholder audio and playlist files under base_path and keeps
    the tags each audio file should report. read_tags stands in for the
    mutagen reader.
    """

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path
        self.tags: Dict[str, TrackMetadata] = {}
        self.track_counter = 0

    def _touch(self, path: str, content: str = "") -> str:
        full_path = os.path.normpath(os.path.join(self.base_path, path))
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, 'w', encoding='utf-8') as fp:
            fp.write(content)
        return full_path

    def make_track(self, path=None, title=None, performers: Sequence[str] = (), album="",
                   album_artists: Sequence[str] = (), genres: Sequence[str] = (), year=0,
                   seconds=180, diskno=0, disk_count=0, trackno=0, track_count=0) -> str:
        """
        Create an audio file and register its tags. Returns the path relative
        to base_path, which tests use as the working directory.
        """
        if path is None:
            path = f"track_{self.track_counter}.mp3"
        self.track_counter += 1

        self._touch(path)
        return self.tag(path, title, performers, album, album_artists, genres, year,
                        seconds, diskno, disk_count, trackno, track_count)

    def tag(self, path, title=None, performers: Sequence[str] = (), album="",
            album_artists: Sequence[str] = (), genres: Sequence[str] = (), year=0,
            seconds=180, diskno=0, disk_count=0, trackno=0, track_count=0) -> str:
        """Register tags for path without creating a file"""
        full_path = os.path.normpath(os.path.join(self.base_path, path))
        self.tags[full_path] = TrackMetadata(
            title=title or os.path.basename(path),
            performers=list(performers),
            album=album,
            album_artists=list(album_artists),
            genres=list(genres),
            duration=timedelta(seconds=seconds),
            year=year,
            diskno=diskno,
            disk_count=disk_count,
            track_count=track_count,
            trackno=trackno,
        )
        return path

    def make_album(self, count, album, artist, year=2000, genre="Rock") -> List[str]:
        return [
            self.make_track(
                path=os.path.join(album, f"{n:02}.mp3"), title=f"Track {n}", performers=[artist],
                album=album, album_artists=[artist], genres=[genre], year=year,
                trackno=n, track_count=count,
            )
            for n in range(1, count + 1)
        ]

    def make_playlist(self, path: str, entries: Sequence[str]) -> str:
        self._touch(path, "\n".join(entries) + "\n")
        return path

    def read_tags(self, path: str) -> TrackMetadata:
        full_path = os.path.normpath(os.path.join(self.base_path, path))
        try:
            return self.tags[full_path]
        except KeyError:
            raise TagReadError(f"{path} is not a supported audio file")
