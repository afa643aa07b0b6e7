import hashlib
from typing import Optional, Union

from src.config import settings


class ContentHasher:
    """SHA-256 fingerprint used for exact-duplicate detection and chain of custody.

    With ``prefix_bytes`` set only the first ``prefix_bytes`` of a payload are
    hashed. That trades exactness for speed on very large media: equal
    prefixes give equal digests, so the duplicate gate's "exact" verdict then
    means "identical prefix", not "byte-identical file".
    """

    def __init__(self, prefix_bytes: Optional[int] = None):
        if prefix_bytes is not None and prefix_bytes <= 0:
            raise ValueError("prefix_bytes must be a positive integer")
        self.prefix_bytes = prefix_bytes

    @classmethod
    def from_settings(cls) -> "ContentHasher":
        return cls(prefix_bytes=settings.HASH_PREFIX_BYTES)

    def digest(self, data: Union[bytes, str]) -> str:
        """Calculates SHA-256 hash of the content (text is hashed as UTF-8)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self.prefix_bytes is not None:
            data = data[:self.prefix_bytes]
        return hashlib.sha256(data).hexdigest()
