from otpgen.core.codec.base32 import (
    EXTENDED_HEX,
    EXTENDED_HEX_ALPHABET,
    STANDARD,
    STANDARD_ALPHABET,
    Alphabet,
    Base32Codec,
)

__all__ = [
    "EXTENDED_HEX",
    "EXTENDED_HEX_ALPHABET",
    "STANDARD",
    "STANDARD_ALPHABET",
    "Alphabet",
    "Base32Codec",
]
