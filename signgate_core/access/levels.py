"""
Access Levels
=============
Coarse authorization tiers and endpoint data characteristics.
"""

from enum import Enum, IntEnum


class AccessLevel(IntEnum):
    """Ordered access tiers; higher values grant more."""
    PUBLIC = 0
    AUTHENTICATED = 1

    def satisfies(self, required: "AccessLevel") -> bool:
        return self >= required


class MethodCharacteristic(str, Enum):
    """What kind of data an endpoint touches."""
    UNOWNED_DATA = "unowned_data"
    OWNED_DATA = "owned_data"
