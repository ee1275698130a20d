import random

DEFAULT_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'


def random_code(length=6, alphabet=DEFAULT_ALPHABET, rng=None):
    rng = rng or random
    return ''.join(rng.choices(alphabet, k=length))


def unique_code(is_taken, length=6, alphabet=DEFAULT_ALPHABET, rng=None):
    """Generate a short code that ``is_taken`` does not already claim.

    This is only a best effort: the caller must re-check when inserting,
    since another handler may take the same code in between.
    """
    while True:
        code = random_code(length, alphabet, rng)
        if not is_taken(code):
            return code


def random_token(existing, length=4, alphabet=DEFAULT_ALPHABET, rng=None):
    """Per-room player token, retried until it collides with none of ``existing``."""
    existing = set(existing)
    return unique_code(lambda t: t in existing, length, alphabet, rng)


def normalize_code(code) -> str:
    return str(code or '').strip().upper()
