"""
Identity Service port.

Recognition itself (camera capture, face matching) happens outside this
service. Callers hand over a captured sample and get back the matched
customer id, or None when nobody matched.
"""

from collections.abc import Mapping
from typing import Protocol


class IdentityService(Protocol):
    def identify(self, sample: bytes) -> int | None:
        """Return the id of the customer the sample belongs to, or None."""
        ...


class StaticIdentityService:
    """
    Lookup-table implementation for development and tests.

    Usage:
        identity = StaticIdentityService({b"sample-ana": 1})
        TableService(db).identify_and_seat(table_id, b"sample-ana", identity)
    """

    def __init__(self, known: Mapping[bytes, int] | None = None):
        self._known = dict(known or {})

    def identify(self, sample: bytes) -> int | None:
        return self._known.get(sample)
