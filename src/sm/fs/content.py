"""File content policy: size limits, MIME capabilities and display sanitizing."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path

import charset_normalizer
from loguru import logger

from sm.errors import ValidationError

__all__ = [
    "DEFAULT_MIME_TYPE",
    "MAX_DISPLAY_CHARS",
    "MAX_FILE_SIZE",
    "MimeInfo",
    "binary_placeholder",
    "check_file_size",
    "decode_text",
    "detect_mime",
    "is_binary",
    "is_text_mime",
    "lookup_mime",
    "sanitize_contents",
]

MAX_FILE_SIZE = 400 * 1024
MAX_DISPLAY_CHARS = 50_000
DEFAULT_MIME_TYPE = "application/octet-stream"

# Control chars that appear in text (bell, backspace, tab, newline, formfeed,
# carriage return, escape) plus printable ASCII and extended ASCII
_TEXT_CHARS = frozenset({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x100)))


@dataclass(frozen=True)
class MimeInfo:
    """MIME type of a file and whether it is served as text."""

    mime_type: str
    is_text: bool


# Declared MIME types (or prefixes ending in "/") that are read as text
_TEXT_MIME_PREFIXES = (
    "text/",
    "application/json",
    "application/javascript",
    "application/typescript",
    "application/xml",
    "application/yaml",
    "application/x-yaml",
    "application/toml",
    "application/x-sh",
    "application/sql",
)

# Extensions whose platform mapping is missing or wrong for source trees
# (.ts is "video/mp2t" in most mime databases)
_EXTENSION_TABLE: dict[str, MimeInfo] = {
    ".ts": MimeInfo("application/typescript", True),
    ".tsx": MimeInfo("application/typescript", True),
    ".mts": MimeInfo("application/typescript", True),
    ".cts": MimeInfo("application/typescript", True),
    ".js": MimeInfo("application/javascript", True),
    ".mjs": MimeInfo("application/javascript", True),
    ".cjs": MimeInfo("application/javascript", True),
    ".jsx": MimeInfo("application/javascript", True),
    ".json": MimeInfo("application/json", True),
    ".md": MimeInfo("text/markdown", True),
    ".yaml": MimeInfo("application/yaml", True),
    ".yml": MimeInfo("application/yaml", True),
    ".toml": MimeInfo("application/toml", True),
    ".py": MimeInfo("text/x-python", True),
    ".wasp": MimeInfo("text/plain", True),
    ".prisma": MimeInfo("text/plain", True),
    ".env": MimeInfo("text/plain", True),
    ".sh": MimeInfo("application/x-sh", True),
    ".sql": MimeInfo("application/sql", True),
    ".txt": MimeInfo("text/plain", True),
    ".csv": MimeInfo("text/csv", True),
    ".html": MimeInfo("text/html", True),
    ".css": MimeInfo("text/css", True),
    ".svg": MimeInfo("image/svg+xml", False),
    ".png": MimeInfo("image/png", False),
    ".jpg": MimeInfo("image/jpeg", False),
    ".jpeg": MimeInfo("image/jpeg", False),
    ".gif": MimeInfo("image/gif", False),
    ".pdf": MimeInfo("application/pdf", False),
    ".zip": MimeInfo("application/zip", False),
}


def is_text_mime(mime_type: str) -> bool:
    """Whether a declared MIME type is served as text."""
    return mime_type.startswith(_TEXT_MIME_PREFIXES)


def lookup_mime(path: Path | str) -> MimeInfo:
    """Look up the MIME capability of a file by extension.

    Unknown extensions map to application/octet-stream (binary); use
    detect_mime() to sniff their content instead.
    """
    suffix = Path(path).suffix.lower()
    known = _EXTENSION_TABLE.get(suffix)
    if known is not None:
        return known

    guessed, _ = mimetypes.guess_type(str(path), strict=False)
    if guessed is None:
        return MimeInfo(DEFAULT_MIME_TYPE, False)
    return MimeInfo(guessed, is_text_mime(guessed))


def is_binary(data: bytes, sample_size: int = 8192) -> bool:
    """Detect if data appears to be binary.

    Args:
        data: Bytes to check
        sample_size: Number of bytes to sample

    Returns:
        True if data appears binary
    """
    sample = data[:sample_size]
    if b"\x00" in sample:
        return True
    non_text = sum(1 for byte in sample if byte not in _TEXT_CHARS)
    return non_text / len(sample) > 0.3 if sample else False


def detect_mime(path: Path | str, data: bytes) -> MimeInfo:
    """MIME capability of a file, sniffing content when the extension is unknown.

    Unknown extensions whose bytes look like text are served as text/plain;
    everything else unknown stays application/octet-stream.
    """
    info = lookup_mime(path)
    if info.mime_type == DEFAULT_MIME_TYPE and not is_binary(data):
        return MimeInfo("text/plain", True)
    return info


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8, falling back to charset detection.

    Bytes that no detected encoding explains are decoded as UTF-8 with
    replacement characters.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        # Fallback: try charset detection
        detected = charset_normalizer.from_bytes(data).best()
        if detected is not None:
            logger.debug(f"Decoded as {detected.encoding} (not UTF-8)")
            return str(detected)

    logger.warning("Could not detect text encoding, replacing invalid bytes")
    return data.decode("utf-8", errors="replace")


def check_file_size(size: int, max_size: int = MAX_FILE_SIZE) -> None:
    """Reject a read target larger than ``max_size`` bytes.

    Raises:
        ValidationError: If the file is too large
    """
    if size > max_size:
        raise ValidationError(
            f"File too large ({size} bytes). Maximum allowed size is "
            f"{max_size} bytes ({round(max_size / 1024)}KB)."
        )


def binary_placeholder(size: int, mime_type: str) -> str:
    return f"[Binary file: {size} bytes, MIME type: {mime_type}]"


def sanitize_contents(contents: str, max_chars: int = MAX_DISPLAY_CHARS) -> str:
    """Prepare decoded text for transmission, truncating very long content."""
    if len(contents) > max_chars:
        return (
            contents[:max_chars]
            + f"\n\n[Content truncated - file is {len(contents)} characters, "
            f"showing first {max_chars}]"
        )
    return contents
