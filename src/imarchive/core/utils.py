"""
Utility functions shared across modules: experiment names and metadata text.
"""

import os

from imarchive.core.errors import InvalidExperimentName

# Metadata is free text owned by the user. Bytes that aren't UTF-8 survive
# the str round trip as lone surrogates.
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def decode_text(raw: bytes) -> str:
    return raw.decode(TEXT_ENCODING, TEXT_ERRORS)


def encode_text(text: str) -> bytes:
    return text.encode(TEXT_ENCODING, TEXT_ERRORS)


def display_text(text: str) -> str:
    """
    A copy of ``text`` that any UTF-8 sink accepts.

    Undecodable bytes become U+FFFD; valid text is returned unchanged.
    """
    return encode_text(text).decode(TEXT_ENCODING, "replace")


def check_experiment_name(name: str) -> str:
    """Return ``name`` if it can be used as one directory under the archive root."""
    if not name or not name.strip():
        raise InvalidExperimentName(name, "must not be empty")
    if name in (".", ".."):
        raise InvalidExperimentName(name)
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    if any(sep in name for sep in separators):
        raise InvalidExperimentName(name, "must not contain a path separator")
    if "\x00" in name:
        raise InvalidExperimentName(name, "must not contain NUL characters")
    return name
