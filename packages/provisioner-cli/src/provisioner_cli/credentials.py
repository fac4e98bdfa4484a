"""Secret generation for the database password and API key."""

import base64
import secrets

PASSWORD_LENGTH = 32
RANDOM_BYTES = 32

# Characters that would need escaping inside a KEY=value line
_EXCLUDED_CHARS = str.maketrans("", "", "=+/")


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate an alphanumeric password from base64-encoded random bytes.

    `=`, `+` and `/` are stripped; when stripping leaves fewer than `length`
    characters another batch of random bytes is drawn.
    """
    value = ""
    while len(value) < length:
        encoded = base64.b64encode(secrets.token_bytes(RANDOM_BYTES)).decode("ascii")
        value += encoded.translate(_EXCLUDED_CHARS)
    return value[:length]


def generate_api_key() -> str:
    """Generate a 64-character hex API key from 32 random bytes."""
    return secrets.token_hex(RANDOM_BYTES)
