from __future__ import annotations

import secrets

from ..core.constants import PUBLIC_ID_ALPHABET, PUBLIC_ID_LENGTH


def generate_public_id(prefix: str, length: int = PUBLIC_ID_LENGTH, alphabet: str = PUBLIC_ID_ALPHABET) -> str:
    chars = "".join(secrets.choice(alphabet) for _ in range(length))
    return f"{prefix}-{chars}"
