"""Metadata key namespace utilities.

This module is the single point of logic for the key prefixes used in the
metadata store. Records written by different generations of the upload path
live under different prefixes:

    img:<id>  vid:<id>  aud:<id>  doc:<id>   typed message-host uploads
    r2:<id>                                   object-store uploads
    <id>                                      legacy bare keys

Rules:
    - Probe order is fixed; the first key holding metadata wins
    - An id that already carries a known prefix is probed as-is only
    - The key that matched is what deletion must remove
"""

# Probe order matters: it decides which record wins for a double-written id.
KEY_PREFIXES: tuple[str, ...] = ("img:", "vid:", "aud:", "doc:", "r2:", "")

OBJECT_STORE_PREFIX = "r2:"


def has_known_prefix(file_id: str) -> bool:
    """Check whether the id already starts with a storage prefix."""
    return any(prefix and file_id.startswith(prefix) for prefix in KEY_PREFIXES)


def candidate_keys(file_id: str) -> list[str]:
    """Build the ordered list of metadata keys to probe for an id.

    Args:
        file_id: Client-supplied identifier.

    Returns:
        [file_id] if it is already prefixed, otherwise every prefix + file_id
        in probe order (ending with the bare id).

    Example:
        >>> candidate_keys("abc.png")
        ['img:abc.png', 'vid:abc.png', 'aud:abc.png', 'doc:abc.png', 'r2:abc.png', 'abc.png']
    """
    if has_known_prefix(file_id):
        return [file_id]
    return [f"{prefix}{file_id}" for prefix in KEY_PREFIXES]


def strip_prefix(key: str) -> str:
    """Remove a known storage prefix from a key, if present."""
    for prefix in KEY_PREFIXES:
        if prefix and key.startswith(prefix):
            return key[len(prefix) :]
    return key


def is_object_store_id(file_id: str) -> bool:
    """An id literally prefixed r2: is always object-store backed."""
    return file_id.startswith(OBJECT_STORE_PREFIX)
