# upload_relay/services/filenames.py
import re
import time
from typing import Optional
from urllib.parse import quote

_WHITESPACE_RUN = re.compile(r"\s+")

# Zelfde set als JavaScript encodeURIComponent: alnum en - _ . ! ~ * ' ( )
_SEGMENT_SAFE = "!~*'()"


def clean_file_name(name: str) -> str:
    """Elke reeks whitespace wordt één underscore."""
    return _WHITESPACE_RUN.sub("_", name)


def encode_path_segment(name: str) -> str:
    return quote(name, safe=_SEGMENT_SAFE)


def fallback_file_name(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"upload-{now_ms}"


def safe_file_name(original_name: Optional[str], temp_name: Optional[str] = None) -> str:
    """
    Bestandsnaam voor storage + publieke URL.

    Prioriteit: originele naam -> temp-naam van de decoder -> upload-<millis>.
    Daarna whitespace -> "_" en percent-encoding voor één padsegment.
    """
    name = original_name or temp_name or fallback_file_name()
    return encode_path_segment(clean_file_name(name))
