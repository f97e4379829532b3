"""
Article identity allocation.

Every article is identified by a version-1 UUID that is exposed in two forms:

- ``text``: the canonical 36 character UUID string used at the API boundary.
- ``binary``: 16 bytes with the timestamp fields reordered
  (time_hi+version, time_mid, time_low, clock_seq+node) so byte order
  follows creation time. This is the physical key used for joins.

Both forms are derived from the same ``uuid.UUID`` value on access.
"""

import uuid
from dataclasses import dataclass


def _to_ordered_bytes(value: uuid.UUID) -> bytes:
    raw = value.bytes
    return raw[6:8] + raw[4:6] + raw[0:4] + raw[8:16]


def _from_ordered_bytes(data: bytes) -> uuid.UUID:
    return uuid.UUID(bytes=data[4:8] + data[2:4] + data[0:2] + data[8:16])


@dataclass(frozen=True)
class ArticleIdentity:
    """Immutable article identity with text and binary accessors."""

    value: uuid.UUID

    @property
    def text(self) -> str:
        return str(self.value)

    @property
    def binary(self) -> bytes:
        return _to_ordered_bytes(self.value)

    @classmethod
    def from_text(cls, text: str) -> 'ArticleIdentity':
        """
        Parse the text form.

        Raises:
            ValueError: If ``text`` is not a UUID string.
        """
        if not isinstance(text, str):
            raise ValueError(f"Article identity must be a string, got {type(text).__name__}")
        return cls(uuid.UUID(text))

    @classmethod
    def from_binary(cls, data) -> 'ArticleIdentity':
        """
        Decode the binary storage form.

        Accepts ``bytes`` or ``memoryview`` (as returned by some database drivers).

        Raises:
            ValueError: If ``data`` is not exactly 16 bytes.
        """
        data = bytes(data)
        if len(data) != 16:
            raise ValueError(f"Binary article identity must be 16 bytes, got {len(data)}")
        return cls(_from_ordered_bytes(data))

    def __str__(self):
        return self.text


def allocate() -> ArticleIdentity:
    """Allocate a new time-ordered article identity. Performs no I/O."""
    return ArticleIdentity(uuid.uuid1())
