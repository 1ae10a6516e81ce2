# FirePass - Password Generator
#
# Generates entry secrets from the selected character classes.
# Every selected class appears at least once.

import secrets
from dataclasses import dataclass

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

MIN_LENGTH = 8
MAX_LENGTH = 64


@dataclass(frozen=True)
class PasswordGeneratorSettings:
    length: int = 16
    use_uppercase: bool = True
    use_lowercase: bool = True
    use_numbers: bool = True
    use_symbols: bool = True


def generate_password(settings: PasswordGeneratorSettings = PasswordGeneratorSettings()) -> str:
    """
    Generate a random password.

    Raises:
        ValueError: no character class selected, or length outside 8..64
    """
    if not MIN_LENGTH <= settings.length <= MAX_LENGTH:
        raise ValueError(f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}")

    pools = []
    if settings.use_lowercase:
        pools.append(LOWERCASE)
    if settings.use_uppercase:
        pools.append(UPPERCASE)
    if settings.use_numbers:
        pools.append(DIGITS)
    if settings.use_symbols:
        pools.append(SYMBOLS)
    if not pools:
        raise ValueError("Select at least one character set")

    charset = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(charset) for _ in range(settings.length - len(chars))]

    # Fisher-Yates with a CSPRNG so the guaranteed chars are not always first
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]

    return "".join(chars)
