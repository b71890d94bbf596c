import os
import re
import logging
import mutagen

from datetime import timedelta
from typing import Optional, Tuple

from .models import TrackMetadata

logger = logging.getLogger('metadata')

_NUMBER = re.compile(r"\d+")


class TagReadError(Exception):
    """The file couldn't be opened as a tagged audio file"""


def _parse_number(value: Optional[str]) -> int:
    if not value:
        return 0
    match = _NUMBER.search(value)
    return int(match.group()) if match else 0


def _parse_position(value: Optional[str]) -> Tuple[int, int]:
    """Split '3/12' into (3, 12). Missing parts are 0."""
    if not value:
        return 0, 0
    number, _, total = value.partition('/')
    return _parse_number(number), _parse_number(total)


class MetadataManager:
    @staticmethod
    def get_metadata(path: str) -> TrackMetadata:
        try:
            audio = mutagen.File(path, easy=True)
        except (mutagen.MutagenError, OSError) as e:
            raise TagReadError(f"Failed to read tags from {path}: {e}") from e

        if audio is None:
            raise TagReadError(f"{path} is not a supported audio file")

        def first(key: str) -> Optional[str]:
            return audio.get(key, [None])[0]

        trackno, track_count = _parse_position(first('tracknumber'))
        diskno, disk_count = _parse_position(first('discnumber'))
        # FLAC and Vorbis files keep the totals in their own fields
        track_count = track_count or _parse_number(first('totaltracks') or first('tracktotal'))
        disk_count = disk_count or _parse_number(first('totaldiscs') or first('disctotal'))

        length = getattr(audio.info, 'length', 0) or 0

        metadata = TrackMetadata(
            title=first('title') or os.path.basename(path),
            performers=list(audio.get('artist', [])),
            album=first('album') or "",
            album_artists=list(audio.get('albumartist', [])),
            genres=list(audio.get('genre', [])),
            duration=timedelta(seconds=length),
            year=_parse_number(first('date')),
            diskno=diskno,
            disk_count=disk_count,
            track_count=track_count,
            trackno=trackno,
        )
        logger.debug(f"Read tags from {path}: {metadata}")
        return metadata
