import secrets

# Lowercase base36 so codes survive case-insensitive lookups
ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SHORT_CODE_LENGTH = 6


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Draw ``length`` characters uniformly from ALPHABET."""
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


def normalize_short_code(code: str) -> str:
    """Normalize short code to lowercase for case-insensitive lookups."""
    return code.strip().lower()
