"""
Password generation and validation.
"""

import secrets
import string

from passlane import config


def generate(length: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH) -> str:
    """
    Generate a random password containing at least one lowercase letter,
    one uppercase letter, one digit and one symbol.
    """
    if length < 4:
        raise ValueError("Generated passwords must be at least 4 characters long")

    ambiguous = config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS
    groups = [
        ''.join(c for c in string.ascii_lowercase if c not in ambiguous),
        ''.join(c for c in string.ascii_uppercase if c not in ambiguous),
        ''.join(c for c in string.digits if c not in ambiguous),
        config.PASSWORD_GENERATOR_SYMBOLS,
    ]
    chars = ''.join(groups)

    password = [secrets.choice(group) for group in groups]
    password += [secrets.choice(chars) for _ in range(length - len(groups))]
    secrets.SystemRandom().shuffle(password)
    return ''.join(password)


def validate_password(password: str) -> bool:
    """
    Check that a value looks like a password: within the length limits,
    no whitespace, with letters and at least one digit or symbol.
    """
    if not config.PASSWORD_MIN_LENGTH <= len(password) <= config.PASSWORD_MAX_LENGTH:
        return False
    if any(c.isspace() for c in password):
        return False
    has_letter = any(c.isalpha() for c in password)
    has_other = any(c.isdigit() or c in string.punctuation for c in password)
    return has_letter and has_other
