import uuid
from typing import Optional


def parse_uuid(value) -> Optional[uuid.UUID]:
    """UUID from a path/body value, or ``None`` when it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
