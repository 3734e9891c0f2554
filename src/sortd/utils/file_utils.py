"""
Utility functions for file inspection.

Content types here are advisory and only feed display layers; organizing is
purely name-based.
"""

import hashlib
import logging
import mimetypes
import os
from typing import Optional

import magic

logger = logging.getLogger(__name__)

SNIFF_BYTES = 512
GENERIC_MIME_TYPE = "application/octet-stream"

# Extensions libmagic tends to report generically
OOXML = "application/vnd.openxmlformats-officedocument"

EXTENSION_TYPES = {
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".json": "application/json",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".docx": f"{OOXML}.wordprocessingml.document",
    ".xlsx": f"{OOXML}.spreadsheetml.sheet",
    ".pptx": f"{OOXML}.presentationml.presentation",
}


def get_file_hash(file_path: str, algorithm: str = "sha256") -> str:
    """Calculate hash of a file.

    Args:
        file_path: Path to the file
        algorithm: Hash algorithm to use (default: sha256)

    Returns:
        Hex string of the file hash
    """
    hash_obj = hashlib.new(algorithm)

    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_obj.update(chunk)

    return hash_obj.hexdigest()


def guess_type_from_extension(file_path: str) -> Optional[str]:
    """Look a file's extension up in the extension table."""
    ext = os.path.splitext(file_path)[1].lower()
    if ext in EXTENSION_TYPES:
        return EXTENSION_TYPES[ext]
    mime_type, _ = mimetypes.guess_type(file_path)
    return mime_type


def get_file_mime_type(file_path: str) -> str:
    """Get the MIME type of a file from its first 512 bytes.

    Falls back to the extension table when sniffing fails or only yields a
    generic type.

    Args:
        file_path: Path to the file

    Returns:
        MIME type string (``application/octet-stream`` when unknown)
    """
    sniffed = None
    try:
        with open(file_path, "rb") as f:
            head = f.read(SNIFF_BYTES)
        sniffed = magic.from_buffer(head, mime=True) if head else None
    except (OSError, magic.MagicException) as e:
        logger.warning(f"Failed to detect MIME type for {file_path}: {e}")

    if sniffed and sniffed not in (GENERIC_MIME_TYPE, "text/plain"):
        return sniffed

    return guess_type_from_extension(file_path) or sniffed or GENERIC_MIME_TYPE


def human_readable_size(size_bytes: int) -> str:
    """Convert bytes to human readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human readable size string
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} PB"
