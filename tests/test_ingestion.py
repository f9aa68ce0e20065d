"""Audio size ceiling and container type normalization."""

from __future__ import annotations

import pytest

from callscope.pipelines.analysis import check_size, normalize_audio, resolve_mime_type
from callscope.pipelines.analysis.ingestion import (
    DEFAULT_MIME_TYPE,
    EXTENSION_ALIASES,
    MIME_ALIASES,
    sanitize_filename,
)


@pytest.mark.parametrize(
    ("declared", "expected"),
    [
        ("audio/mp3", "audio/mpeg"),
        ("audio/x-mp3", "audio/mpeg"),
        ("audio/mpeg3", "audio/mpeg"),
        ("audio/x-wav", "audio/wav"),
        ("audio/wave", "audio/wav"),
        ("audio/x-m4a", "audio/mp4"),
        ("audio/m4a", "audio/mp4"),
        ("AUDIO/OGG", "audio/ogg"),
        ("audio/webm;codecs=opus", "audio/webm"),
        ("video/3gpp", "audio/3gpp"),
    ],
)
def test_known_aliases_map_to_canonical_type(declared, expected):
    assert resolve_mime_type(declared) == expected


def test_unknown_label_defaults_to_mpeg():
    assert resolve_mime_type("audio/x-something") == DEFAULT_MIME_TYPE == "audio/mpeg"
    assert resolve_mime_type(None) == "audio/mpeg"
    assert resolve_mime_type("") == "audio/mpeg"


def test_octet_stream_falls_back_to_file_extension():
    assert resolve_mime_type("application/octet-stream", "call.m4a") == "audio/mp4"
    assert resolve_mime_type("application/octet-stream", "CALL.WAV") == "audio/wav"
    assert resolve_mime_type("application/octet-stream", "notes.txt") == "audio/mpeg"


def test_declared_label_wins_over_extension():
    assert resolve_mime_type("audio/wav", "call.mp3") == "audio/wav"


def test_size_ceiling_is_inclusive():
    ceiling = 20 * 1024 * 1024
    assert check_size(ceiling - 1, ceiling).ok
    assert check_size(ceiling, ceiling).ok
    assert not check_size(ceiling + 1, ceiling).ok


def test_normalize_audio_keeps_original_label():
    audio = normalize_audio(b"\x00\x01", "audio/x-m4a", "call.m4a")

    assert audio.mime_type == "audio/mp4"
    assert audio.original_mime_type == "audio/x-m4a"
    assert audio.size_bytes == 2
    assert audio.filename == "call.m4a"


def test_sanitize_filename_strips_paths_and_unsafe_characters():
    assert sanitize_filename("../../etc/call recording (1).mp3") == "call_recording__1_.mp3"
    assert sanitize_filename(None) == "recording"
    assert sanitize_filename("...") == "recording"


def test_every_alias_resolves_to_its_canonical_type():
    for label, canonical in MIME_ALIASES.items():
        assert resolve_mime_type(label) == canonical
    for extension, canonical in EXTENSION_ALIASES.items():
        assert resolve_mime_type(None, f"call{extension}") == canonical
