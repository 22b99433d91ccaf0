"""Identifier generation for persisted records."""

import re
import secrets

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def generate_id() -> str:
    """Return a new 24-character lowercase hex identifier."""
    return secrets.token_hex(12)
