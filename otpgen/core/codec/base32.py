"""RFC 4648 base32 codec.

Bytes are converted in groups of five (40 bits) into eight 5-bit symbols,
most significant bits first. Decoding skips anything that is neither an
alphabet symbol nor the pad character, so wrapped or copy-pasted text decodes
the same as its compact form.
"""

from __future__ import annotations

from typing import Final

from otpgen.core.errors import MalformedInput

PAD: Final[str] = "="
LINE_LENGTH: Final[int] = 72

_GROUP_BYTES: Final[int] = 5
_GROUP_SYMBOLS: Final[int] = 8
_GROUP_BITS: Final[int] = 40
_SYMBOL_MASK: Final[int] = 0x1F

# Input bytes in a (possibly partial) group -> symbols carrying real bits.
_SYMBOLS_PER_BYTES: Final[dict[int, int]] = {1: 2, 2: 4, 3: 5, 4: 7, 5: 8}
# Symbols seen before padding -> bytes fully determined by them.
_BYTES_PER_SYMBOLS: Final[dict[int, int]] = {1: 1, 2: 1, 3: 1, 4: 2, 5: 3, 6: 3, 7: 4}


class Alphabet:
    __slots__ = ("symbols", "_values")

    def __init__(self, symbols: str) -> None:
        if len(symbols) != 32:
            raise ValueError("alphabet must contain exactly 32 symbols")
        if len(set(symbols)) != 32:
            raise ValueError("alphabet symbols must be distinct")
        if PAD in symbols:
            raise ValueError(f"alphabet must not contain the pad character {PAD!r}")
        self.symbols = symbols
        self._values = {symbol: value for value, symbol in enumerate(symbols)}

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._values

    def __repr__(self) -> str:
        return f"Alphabet({self.symbols!r})"

    def symbol(self, value: int) -> str:
        return self.symbols[value & _SYMBOL_MASK]

    def value(self, symbol: str) -> int | None:
        return self._values.get(symbol)


STANDARD_ALPHABET: Final[Alphabet] = Alphabet("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
EXTENDED_HEX_ALPHABET: Final[Alphabet] = Alphabet("0123456789ABCDEFGHIJKLMNOPQRSTUV")


class Base32Codec:
    def __init__(self, alphabet: Alphabet = STANDARD_ALPHABET) -> None:
        self._alphabet = alphabet

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    def encode(self, data: bytes | bytearray | memoryview, wrap_lines: bool = False) -> str:
        """Encode ``data`` to padded base32 text.

        With ``wrap_lines`` the output is split into lines of ``LINE_LENGTH``
        characters, each terminated by a newline.
        """
        if isinstance(data, str):
            raise TypeError("encode() expects bytes, not str")
        raw = bytes(data)
        parts: list[str] = []
        line_chars = 0
        for start in range(0, len(raw), _GROUP_BYTES):
            group = raw[start : start + _GROUP_BYTES]
            window = int.from_bytes(group.ljust(_GROUP_BYTES, b"\x00"), "big")
            emitted = _SYMBOLS_PER_BYTES[len(group)]
            symbols = [
                self._alphabet.symbol(window >> (_GROUP_BITS - 5 * (index + 1)))
                for index in range(emitted)
            ]
            parts.append("".join(symbols) + PAD * (_GROUP_SYMBOLS - emitted))
            if wrap_lines:
                line_chars += _GROUP_SYMBOLS
                if line_chars >= LINE_LENGTH:
                    parts.append("\n")
                    line_chars = 0
        if wrap_lines and line_chars:
            parts.append("\n")
        return "".join(parts)

    def decode(self, text: str | bytes) -> bytes:
        """Decode base32 ``text``, ignoring characters outside the alphabet.

        Raises ``MalformedInput`` when the text ends inside a group that is not
        closed by padding.
        """
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("latin-1")
        out = bytearray()
        window = 0
        pending = 0
        padded = False
        for char in text:
            if char == PAD:
                padded = True
                break
            value = self._alphabet.value(char)
            if value is None:
                continue
            window = (window << 5) | value
            pending += 1
            if pending == _GROUP_SYMBOLS:
                out += window.to_bytes(_GROUP_BYTES, "big")
                window = 0
                pending = 0

        if pending:
            if not padded:
                raise MalformedInput(_GROUP_BITS - 5 * pending)
            window <<= 5 * (_GROUP_SYMBOLS - pending)
            out += window.to_bytes(_GROUP_BYTES, "big")[: _BYTES_PER_SYMBOLS[pending]]
        return bytes(out)


STANDARD: Final[Base32Codec] = Base32Codec(STANDARD_ALPHABET)
EXTENDED_HEX: Final[Base32Codec] = Base32Codec(EXTENDED_HEX_ALPHABET)


def encode(data: bytes | bytearray | memoryview, wrap_lines: bool = False) -> str:
    return STANDARD.encode(data, wrap_lines=wrap_lines)


def decode(text: str | bytes) -> bytes:
    return STANDARD.decode(text)
