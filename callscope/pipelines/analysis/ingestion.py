"""Request ingestion helpers (Stage 02 of the analysis pipeline)."""

from __future__ import annotations

import logging
import os
from typing import Final, Mapping

from .types import NormalizedAudio, SizeCheck

logger = logging.getLogger("callscope.services.analysis_pipeline")

DEFAULT_MIME_TYPE: Final[str] = "audio/mpeg"

MIME_ALIASES: Final[Mapping[str, str]] = {
    # MPEG
    "audio/mpeg": "audio/mpeg",
    "audio/mp3": "audio/mpeg",
    "audio/x-mp3": "audio/mpeg",
    "audio/x-mpeg": "audio/mpeg",
    "audio/mpeg3": "audio/mpeg",
    "video/mpeg": "audio/mpeg",
    # WAV
    "audio/wav": "audio/wav",
    "audio/x-wav": "audio/wav",
    "audio/wave": "audio/wav",
    # AAC / M4A
    "audio/x-m4a": "audio/mp4",
    "audio/m4a": "audio/mp4",
    "audio/mp4": "audio/mp4",
    "audio/aac": "audio/aac",
    "audio/x-aac": "audio/aac",
    # OGG / FLAC / WebM
    "audio/ogg": "audio/ogg",
    "audio/x-ogg": "audio/ogg",
    "audio/flac": "audio/flac",
    "audio/x-flac": "audio/flac",
    "audio/webm": "audio/webm",
    # Mobile recorders
    "audio/amr": "audio/amr",
    "audio/3gpp": "audio/3gpp",
    "video/3gpp": "audio/3gpp",
}

EXTENSION_ALIASES: Final[Mapping[str, str]] = {
    ".mp3": "audio/mpeg",
    ".mpeg": "audio/mpeg",
    ".mpga": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".webm": "audio/webm",
    ".amr": "audio/amr",
    ".3gp": "audio/3gpp",
}


def resolve_mime_type(content_type: str | None, filename: str | None = None) -> str:
    """Map a declared container label to a canonical MIME type. Never fails."""

    if content_type:
        label = content_type.split(";", 1)[0].strip().lower()
        canonical = MIME_ALIASES.get(label)
        if canonical:
            return canonical

    if filename:
        _, extension = os.path.splitext(filename.strip())
        canonical = EXTENSION_ALIASES.get(extension.lower())
        if canonical:
            return canonical

    return DEFAULT_MIME_TYPE


def normalize_audio(
    data: bytes,
    content_type: str | None,
    filename: str | None = None,
) -> NormalizedAudio:
    """Tag the payload with its canonical container type."""

    mime_type = resolve_mime_type(content_type, filename)
    logger.info(
        "Audio normalizado original=%s normalizado=%s bytes=%s",
        content_type,
        mime_type,
        len(data),
    )
    return NormalizedAudio(
        data=data,
        mime_type=mime_type,
        original_mime_type=content_type,
        filename=filename,
    )


def check_size(size_bytes: int, max_bytes: int) -> SizeCheck:
    """Compare the measured payload size against the configured ceiling."""

    return SizeCheck(ok=size_bytes <= max_bytes, size_bytes=size_bytes, max_bytes=max_bytes)


def sanitize_filename(filename: str | None, fallback: str = "recording") -> str:
    """Keep only characters that are safe inside a storage key."""

    if not filename:
        return fallback
    base = os.path.basename(filename.strip())
    cleaned = "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in base)
    return cleaned.strip("._") or fallback


__all__ = [
    "DEFAULT_MIME_TYPE",
    "EXTENSION_ALIASES",
    "MIME_ALIASES",
    "check_size",
    "normalize_audio",
    "resolve_mime_type",
    "sanitize_filename",
]
