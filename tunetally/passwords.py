"""Salted one-way password hashing.

Werkzeug writes the method, its cost parameters and the salt into the hash
string itself (``scrypt:32768:8:1$<salt>$<digest>``), so verifying needs
nothing but the stored value.
"""

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(plaintext: str) -> str:
    return generate_password_hash(plaintext)


def verify_password(plaintext: str, stored_hash: str | None) -> bool:
    """Check ``plaintext`` against ``stored_hash`` in constant time.

    A stored value Werkzeug cannot parse counts as a mismatch.
    """
    if not stored_hash:
        return False
    try:
        return check_password_hash(stored_hash, plaintext)
    except (ValueError, TypeError):
        return False
