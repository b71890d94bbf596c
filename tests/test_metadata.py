import os
import shutil
import pytest
import mutagen

from trackdb.generator import CatalogGenerator
from trackdb.metadata import MetadataManager, TagReadError

pydub = pytest.importorskip("pydub")

requires_ffmpeg = pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg is needed to encode mp3 files")


def create_mock_audio(path, **tags):
    audio = pydub.AudioSegment.silent(duration=1000)
    audio.export(path, format="mp3")

    audio = mutagen.File(path, easy=True)
    if audio.tags is None:
        audio.add_tags()
    for key, value in tags.items():
        audio[key] = value

    audio.save()
    return path


@requires_ffmpeg
def test_read_all_fields(tmp_path):
    path = create_mock_audio(
        str(tmp_path / "track1.mp3"), title="Macarena", artist=["Los del Río", "Bayside Boys"],
        album="Greatest Wedding Hits", albumartist="Various Artists", genre="Latin Pop",
        date="1995-08-15", tracknumber="3/12", discnumber="1/2",
    )

    metadata = MetadataManager.get_metadata(path)

    assert metadata.title == "Macarena"
    assert metadata.performers == ["Los del Río", "Bayside Boys"]
    assert metadata.album == "Greatest Wedding Hits"
    assert metadata.album_artists == ["Various Artists"]
    assert metadata.genres == ["Latin Pop"]
    assert metadata.year == 1995
    assert (metadata.trackno, metadata.track_count) == (3, 12)
    assert (metadata.diskno, metadata.disk_count) == (1, 2)
    assert abs(metadata.duration.total_seconds() - 1) < 0.5


@requires_ffmpeg
def test_no_metadata(tmp_path):
    """
    Untagged files report the filename as title and leave everything else empty
    """
    path = create_mock_audio(str(tmp_path / "no_metadata.mp3"))

    metadata = MetadataManager.get_metadata(path)

    assert metadata.title == "no_metadata.mp3"
    assert metadata.performers == []
    assert metadata.album == ""
    assert metadata.genres == []
    assert (metadata.year, metadata.trackno, metadata.diskno) == (0, 0, 0)


@requires_ffmpeg
def test_untagged_file_gets_placeholders(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    create_mock_audio("no_metadata.mp3")
    generator = CatalogGenerator.create("catalog.db", portable=True)

    result = generator.process_files(["no_metadata.mp3"])

    store = generator.store
    assert result.songs_added == 1
    assert store.has_song("/no_metadata.mp3")
    assert [a.name for a in store.artists()] == ["Unknown"]
    assert [g.name for g in store.genres()] == ["Unknown"]
    assert store.has_album("Unknown", "Unknown", 0)


def test_not_an_audio_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("just some text")

    with pytest.raises(TagReadError):
        MetadataManager.get_metadata(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(TagReadError):
        MetadataManager.get_metadata(os.path.join(str(tmp_path), "missing.mp3"))
