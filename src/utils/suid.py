"""Session ID utility functions."""

import uuid


def get_suid() -> str:
    """
    Generate a unique session ID (SUID) using UUID4.

    The value is a canonical RFC 4122 UUID (hex groups separated by
    hyphens) generated with uuid.uuid4(), which draws from the operating
    system's random source.

    Returns:
        str: A UUID4 string suitable for use as a session identifier.
    """
    return str(uuid.uuid4())


def check_suid(suid: str) -> bool:
    """
    Check if given string is a proper session ID.

    Parameters:
        suid (str): Value to validate.

    Returns:
        bool: True if the value is a canonical, hyphenated UUID string.
    """
    if not isinstance(suid, str):
        return False
    try:
        return str(uuid.UUID(suid)) == suid.lower()
    except ValueError:
        return False
