"""
Input and output directory helpers.

Recordings (.webm) and their live-caption transcripts (.txt with the same
stem) are read from the input directory; transcriptions, summaries and
deeper-insight documents are written to the output directory under a
date-tagged base name.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .history import DEEPER_INSIGHTS_SUFFIX

RECORDING_EXTENSION = ".webm"
RECORDER_PREFIX = "beesy_recording-"

_TIME_AND_CODE = re.compile(r"_\d{2}_\d{2}_\d{2}-.*$")


class WorkspaceError(Exception):
    """Raised when expected input files are missing."""

    pass


def ensure_directory(path: Union[str, Path]) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def latest_recording_stem(input_dir: Union[str, Path]) -> str:
    """
    Stem of the most recently modified recording in the input directory.

    Raises:
        WorkspaceError: If the directory holds no recordings
    """
    recordings = [p for p in Path(input_dir).glob(f"*{RECORDING_EXTENSION}") if not p.stem.endswith("-compressed")]
    if not recordings:
        raise WorkspaceError(f"No {RECORDING_EXTENSION} recordings found in {input_dir}")
    recordings.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    return recordings[0].stem


def sanitize_recording_name(name: str) -> str:
    """
    Reduce a recorder file name to its date.

    'beesy_recording-2025_07_02_10_30_00-abc-defg-hij' -> '2025_07_02'.
    Names that do not follow the pattern are returned without the prefix.
    """
    sanitized = name[len(RECORDER_PREFIX) :] if name.startswith(RECORDER_PREFIX) else name
    return _TIME_AND_CODE.sub("", sanitized)


def read_text_or_empty(path: Union[str, Path]) -> str:
    """File contents, or "" when the file does not exist."""
    file_path = Path(path)
    if not file_path.exists():
        return ""
    return file_path.read_text(encoding="utf-8")


def write_text(path: Union[str, Path], content: str) -> Path:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    return file_path


@dataclass(frozen=True)
class MeetingFiles:
    """Paths belonging to one recorded meeting."""

    input_dir: Path
    output_dir: Path
    stem: str

    @property
    def base_name(self) -> str:
        return sanitize_recording_name(self.stem)

    @property
    def recording(self) -> Path:
        return self.input_dir / f"{self.stem}{RECORDING_EXTENSION}"

    @property
    def compressed_recording(self) -> Path:
        return self.input_dir / f"{self.stem}-compressed{RECORDING_EXTENSION}"

    @property
    def live_transcript(self) -> Path:
        return self.input_dir / f"{self.stem}.txt"

    @property
    def transcription(self) -> Path:
        return self.output_dir / f"{self.base_name}-transcription.txt"

    @property
    def summary(self) -> Path:
        return self.output_dir / f"{self.base_name}-summary.md"

    @property
    def deeper_insights(self) -> Path:
        return self.output_dir / f"{self.base_name}{DEEPER_INSIGHTS_SUFFIX}"


def meeting_files(input_dir: Union[str, Path], output_dir: Union[str, Path], stem: str) -> MeetingFiles:
    return MeetingFiles(input_dir=Path(input_dir), output_dir=Path(output_dir), stem=stem)
