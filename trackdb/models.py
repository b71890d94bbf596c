from dataclasses import dataclass, field, fields
from datetime import timedelta
from enum import Enum
from typing import List, Tuple


class FileKind(Enum):
    AUDIO = "audio"
    PLAYLIST = "playlist"
    UNKNOWN = "unknown"


@dataclass
class ArtistRow:
    id: int
    name: str

@dataclass
class GenreRow:
    id: int
    name: str

@dataclass
class AlbumRow:
    id: int
    artist_id: int
    name: str
    year: int
    disks: int
    tracks: int

@dataclass
class SongRow:
    id: int
    album_id: int
    name: str
    length: int
    diskno: int
    trackno: int
    filepath: str

@dataclass
class PlaylistRow:
    id: int
    name: str


@dataclass
class TrackMetadata:
    title: str
    performers: List[str]
    album: str
    album_artists: List[str]
    genres: List[str]
    duration: timedelta = timedelta(0)
    year: int = 0
    diskno: int = 0
    disk_count: int = 0
    track_count: int = 0
    trackno: int = 0


@dataclass
class RunResult:
    """Counters for a single add/remove/prune run, plus the files that failed"""
    songs_added: int = 0
    artists_added: int = 0
    albums_added: int = 0
    genres_added: int = 0
    playlists_added: int = 0
    songs_removed: int = 0
    playlists_removed: int = 0
    artists_pruned: int = 0
    albums_pruned: int = 0
    genres_pruned: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def __add__(self, other: "RunResult") -> "RunResult":
        if not isinstance(other, RunResult):
            return NotImplemented
        merged = RunResult()
        for f in fields(self):
            setattr(merged, f.name, getattr(self, f.name) + getattr(other, f.name))
        return merged

    def counters(self) -> List[Tuple[str, int]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self) if f.name != "failures"]

    def summary(self) -> str:
        """Nonzero counters as 'songs added: 3, artists added: 2'; empty if nothing changed"""
        parts = [f"{name.replace('_', ' ')}: {value}" for name, value in self.counters() if value]
        if self.failures:
            parts.append(f"failed files: {len(self.failures)}")
        return ", ".join(parts)

    def fail(self, path: str, reason: str) -> None:
        self.failures.append((path, reason))
