from conftest import make_submission
from wave2midi.utils.cache import SessionCache


def test_store_artifact_uses_midi_filename(cache):
    artifact = cache.store_artifact(b"MThd...", "take 1.final.flac")

    assert artifact.filename == "take 1.final.mid"
    assert artifact.path.name == "take 1.final.mid"
    assert artifact.path.read_bytes() == b"MThd..."
    assert artifact.path.parent.parent == cache.dir


def test_same_filename_twice_gets_separate_handles(cache):
    a = cache.store_artifact(b"a", "song.wav")
    b = cache.store_artifact(b"b", "song.wav")

    assert a.path != b.path
    cache.release_artifact(a)
    assert b.path.read_bytes() == b"b"


def test_release_artifact_deletes_file_once(cache):
    artifact = cache.store_artifact(b"x", "song.wav")

    cache.release_artifact(artifact)
    cache.release_artifact(artifact)

    assert artifact.released
    assert not artifact.path.exists()
    assert not artifact.path.parent.exists()


def test_store_audio_copy(cache):
    submission = make_submission("clip.wav")
    path = cache.store_audio(submission)
    assert path.name == "clip.wav"
    assert path.read_bytes() == submission.data

    cache.release(path)
    assert not path.exists()


def test_release_none_is_noop(cache):
    cache.release(None)
    cache.release_artifact(None)


def test_cleanup_removes_directory(tmp_path):
    cache = SessionCache(root=tmp_path)
    cache.store_artifact(b"x", "song.wav")
    cache.cleanup()
    assert not cache.dir.exists()
