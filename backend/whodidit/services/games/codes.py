import random

# Uppercase letters and digits without the look-alikes 0/O, 1/I/L.
CODE_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'


def generate_game_code(length: int = 4) -> str:
    """Generate a short, human-typeable game code.

    Not checked for uniqueness here: the store's unique constraint on
    ``games.code`` rejects a collision and the caller draws again.
    """
    return ''.join(random.choices(CODE_ALPHABET, k=length))


def normalize_game_code(code) -> str:
    return (code or '').strip().upper()
