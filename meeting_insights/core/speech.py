"""
Speech-to-text functionality using OpenAI Whisper.

This module transcribes meeting recordings, priming the recognizer with the
domain glossary, and compresses large recordings with ffmpeg before upload.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Optional

from .config import config, get_client
from .timing import timer

logger = logging.getLogger(__name__)

COMPRESSION_THRESHOLD_MB = 3
MAX_UPLOAD_MB = 25


class SpeechError(Exception):
    """Raised when speech processing fails."""

    pass


def file_size_mb(path: Path) -> float:
    return path.stat().st_size / (1024 * 1024)


def compress_audio(input_path: Path, output_path: Path) -> Path:
    """
    Re-encode a recording as 64 kbps Opus.

    Raises:
        SpeechError: If ffmpeg is missing or fails
    """
    if shutil.which("ffmpeg") is None:
        raise SpeechError("ffmpeg not found. Install it to compress recordings.")

    cmd = ["ffmpeg", "-y", "-i", str(input_path), "-c:a", "libopus", "-b:a", "64k", str(output_path)]
    result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    if result.returncode != 0 or not output_path.exists():
        raise SpeechError(f"ffmpeg compression failed:\n{result.stderr[-1200:]}")
    return output_path


def prepare_recording(recording: Path, compressed: Path, threshold_mb: float = COMPRESSION_THRESHOLD_MB) -> Path:
    """
    Pick the file to upload.

    An existing compressed copy is reused; otherwise recordings above the
    threshold are compressed first.
    """
    if compressed.exists():
        return compressed
    if not recording.exists():
        raise FileNotFoundError(f"Audio file not found: {recording}")
    if file_size_mb(recording) > threshold_mb:
        logger.info(f"Compressing {recording.name} ({file_size_mb(recording):.1f} MB)")
        return compress_audio(recording, compressed)
    return recording


class SpeechProcessor:
    """
    Handles speech-to-text conversion using OpenAI Whisper.
    """

    def __init__(self, client: Any = None):
        self.client = client if client is not None else get_client()
        self.model = config.transcription_model

    @timer
    async def transcribe_audio(self, path: Path, prompt: Optional[str] = None) -> str:
        """
        Transcribe an audio file.

        Args:
            path: Audio file to upload
            prompt: Optional glossary prompt

        Returns:
            Transcript text

        Raises:
            SpeechError: If the file is too large or transcription fails
        """
        audio_path = Path(path)
        if not audio_path.is_file():
            raise FileNotFoundError(f"Audio file not found: {path}")

        size_mb = file_size_mb(audio_path)
        if size_mb > MAX_UPLOAD_MB:
            raise SpeechError(f"Audio file too large: {size_mb:.1f}MB (max: {MAX_UPLOAD_MB}MB)")

        params = {"model": self.model}
        if prompt:
            params["prompt"] = prompt

        try:
            with open(audio_path, "rb") as audio_file:
                response = await self.client.audio.transcriptions.create(file=audio_file, **params)
        except Exception as e:
            raise SpeechError(f"Failed to transcribe audio: {e}")

        text = getattr(response, "text", None)
        return (text if text is not None else str(response)).strip()
