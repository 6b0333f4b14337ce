"""The module helps with path sanitization to make it work on different platforms"""

import re

UNSAFE_PATH_CHARS = r'[<>:"/\\|?*\x00-\x1f]'
NON_ALPHANUMERIC = r'[^A-Za-z0-9]'


def sanitize_string(string: str, max_bytes: int = 200) -> str:
    """Remove unsafe filesystem characters from a string and truncate to fit byte limit"""
    sanitized = re.sub(UNSAFE_PATH_CHARS, '', str(string))

    if len(sanitized.encode('utf-8')) > max_bytes:
        sanitized = sanitized.encode('utf-8')[:max_bytes].decode(
            'utf-8', errors='ignore'
        )
        sanitized = sanitized.rstrip()

    return sanitized


def sanitize_creator(creator: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore"""
    return re.sub(NON_ALPHANUMERIC, '_', str(creator))
