import os

from typing import Optional

from .models import FileKind

AUDIO_EXTENSIONS = ("mp3", "m4a", "flac")
PLAYLIST_EXTENSION = "m3u"


class PathTraversalError(ValueError):
    """Raised when a path would leave the invocation root in portable mode"""


def extension(path: str) -> str:
    """Return the last suffix of the file name, lowercased and without the dot"""
    _, ext = os.path.splitext(os.path.basename(path))
    return ext[1:].lower()


def strip_extension(path: str) -> str:
    """Base name of path with only its final extension removed (dir/a.b.m3u -> a.b)"""
    stem, _ = os.path.splitext(os.path.basename(path))
    return stem


def classify(path: str) -> FileKind:
    ext = extension(path)
    if ext in AUDIO_EXTENSIONS:
        return FileKind.AUDIO
    if ext == PLAYLIST_EXTENSION:
        return FileKind.PLAYLIST
    return FileKind.UNKNOWN


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False


def to_portable_path(path: str, root: Optional[str] = None) -> str:
    """
    Convert path into the form used on the player's SD card: rooted at the
    invocation directory, forward slashes, and every space escaped as '\\ '.

    Raises PathTraversalError if the path uses '..' or resolves outside root.
    """
    root = os.path.abspath(root or os.getcwd())
    full_path = os.path.abspath(os.path.join(root, path))
    parts = path.replace(os.sep, "/").split("/")

    if ".." in parts or not _is_within(full_path, root):
        raise PathTraversalError(f"Path {path} is not inside {root} or uses the '..' directory")

    relative = os.path.relpath(full_path, root)
    components = [c for c in relative.split(os.sep) if c not in ("", ".")]

    return ("/" + "/".join(components)).replace(" ", "\\ ")


def canonical_path(path: str, root: Optional[str] = None, portable: bool = False) -> str:
    """Natural key of a song file: absolute host path, or the portable form"""
    if portable:
        return to_portable_path(path, root)
    return os.path.abspath(os.path.join(root or os.getcwd(), path))
