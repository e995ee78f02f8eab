from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from wave2midi.state import AudioSubmission, DownloadArtifact, midi_filename


logger = logging.getLogger(__name__)


class SessionCache:
    """
    Temporary folder for this app run.
    Holds the current MIDI artifact and the current audio preview copy; each new
    run replaces them. Deleted when you call cleanup() (the window calls it on close).
    """
    def __init__(self, prefix: str = "wave2midi_", root: Optional[Path] = None) -> None:
        self._tmp = tempfile.TemporaryDirectory(prefix=prefix, dir=str(root) if root else None)
        self.dir = Path(self._tmp.name)

    def _unique(self, filename: str) -> Path:
        # one subfolder per handle so the suggested filename survives intact
        folder = self.dir / uuid.uuid4().hex[:12]
        folder.mkdir(parents=True, exist_ok=True)
        return folder / filename

    def store_artifact(self, payload: bytes, original_filename: str) -> DownloadArtifact:
        name = midi_filename(original_filename)
        path = self._unique(name)
        path.write_bytes(payload)
        return DownloadArtifact(payload=payload, filename=name, path=path)

    def store_audio(self, submission: AudioSubmission) -> Path:
        path = self._unique(submission.filename)
        path.write_bytes(submission.data)
        return path

    def release(self, path: Optional[Path]) -> None:
        if path is None:
            return
        folder = path.parent
        path.unlink(missing_ok=True)
        if folder != self.dir and folder.parent == self.dir:
            shutil.rmtree(folder, ignore_errors=True)
        logger.debug("Released %s", path)

    def release_artifact(self, artifact: Optional[DownloadArtifact]) -> None:
        if artifact is None or artifact.released:
            return
        self.release(artifact.path)
        artifact.released = True

    def cleanup(self) -> None:
        self._tmp.cleanup()
