"""
Team join codes: short, human-enterable, unambiguous.
"""
from __future__ import annotations

import secrets

# Excludes 0, 1, I and O.
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_join_code(code: str) -> str:
    """Codes are entered by hand; accept lowercase and surrounding spaces."""
    return code.strip().upper()


def is_valid_join_code(code: str) -> bool:
    return len(code) == JOIN_CODE_LENGTH and all(c in JOIN_CODE_ALPHABET for c in code)
