"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks. The cost
factor is configurable (CRMDESK_BCRYPT_ROUNDS); 12 rounds takes ~100ms
per hash on modern hardware.
"""

import bcrypt

# bcrypt only looks at the first 72 bytes of a password.
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". The salt and cost are stored inside the
    hash string, so verification needs nothing else.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def burn_verification(password: str, rounds: int = 12) -> None:
    """Spend the bcrypt work of one verification when there is no stored hash.

    Called when the login identifier matches nobody, so a miss costs the
    same as a wrong password.
    """
    bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
