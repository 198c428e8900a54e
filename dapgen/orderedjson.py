"""
Order-preserving access to the members of a JSON object.

Definition and property order in the schema decides the order of the emitted
types and fields, so object keys are read with a token walk over the raw text
instead of being decoded into a mapping. Nested values are skipped
structurally and handed back as raw text fragments; they are only decoded when
somebody needs them.
"""

import json
import re
from json.decoder import scanstring
from typing import Iterator, List, Tuple, Union

from dapgen.common import JsonStructureError

DELIMITER = 'delimiter'
STRING = 'string'
SCALAR = 'scalar'

_WHITESPACE = re.compile(r'[ \t\n\r]*')
_SCALAR = re.compile(r'-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?|true|false|null')

JsonText = Union[bytes, bytearray, str]


class _EndOfContainer(Exception):
    """Raised by skip_value when it consumes a closing delimiter instead of a value."""

    def __init__(self, delimiter: str) -> None:
        super().__init__(delimiter)
        self.delimiter = delimiter


class TokenReader:
    """Splits JSON text into delimiter, string and scalar tokens."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_whitespace(self) -> None:
        """Advances past insignificant whitespace."""
        self.pos = _WHITESPACE.match(self.text, self.pos).end()

    def token(self) -> Tuple[str, str]:
        """Returns the next (kind, value) token."""
        self.skip_whitespace()
        if self.pos >= len(self.text):
            raise JsonStructureError('unexpected end of JSON input', context=self.snippet())
        char = self.text[self.pos]
        if char in '{}[],:':
            self.pos += 1
            return DELIMITER, char
        if char == '"':
            try:
                value, self.pos = scanstring(self.text, self.pos + 1)
            except json.JSONDecodeError as e:
                raise JsonStructureError(f'invalid string literal: {e.msg}', context=self.snippet(), cause=e) from e
            return STRING, value
        match = _SCALAR.match(self.text, self.pos)
        if not match:
            raise JsonStructureError(f'invalid character {char!r} looking for beginning of value', context=self.snippet())
        self.pos = match.end()
        return SCALAR, match.group(0)

    def expect(self, delimiter: str, where: str) -> None:
        """Consumes the given delimiter or fails."""
        kind, value = self.token()
        if kind != DELIMITER or value != delimiter:
            raise JsonStructureError(f'expected {delimiter!r} {where}, got {value!r}', context=self.snippet())

    def snippet(self) -> str:
        """Describes the current position for error messages."""
        return f'offset {self.pos}: {self.text[self.pos:self.pos + 40]!r}'


def _as_text(data: JsonText) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise JsonStructureError('JSON input is not valid UTF-8', cause=e) from e


def skip_value(reader: TokenReader) -> None:
    """
    Consumes one complete value, descending into arrays and objects.

    Raises _EndOfContainer when the next token closes the enclosing container
    instead of starting a value.
    """
    kind, value = reader.token()
    if kind != DELIMITER:
        return
    if value == '{':
        for _ in _object_members(reader):
            pass
    elif value == '[':
        for _ in _array_elements(reader):
            pass
    elif value in '}]':
        raise _EndOfContainer(value)
    else:
        raise JsonStructureError(f'unexpected {value!r} where a value was expected', context=reader.snippet())


def _value_span(reader: TokenReader) -> Tuple[int, int]:
    reader.skip_whitespace()
    start = reader.pos
    try:
        skip_value(reader)
    except _EndOfContainer as end:
        raise JsonStructureError(f'unexpected {end.delimiter!r} where a value was expected', context=reader.snippet()) from None
    return start, reader.pos


def _after_value(reader: TokenReader, closer: str) -> bool:
    """Consumes the ',' or closer that follows a value, returns True at the closer."""
    kind, value = reader.token()
    if kind == DELIMITER and value == closer:
        return True
    if kind != DELIMITER or value != ',':
        raise JsonStructureError(f"expected ',' or {closer!r} after value, got {value!r}", context=reader.snippet())
    return False


def _object_members(reader: TokenReader) -> Iterator[Tuple[str, int, int]]:
    """Yields (key, value start, value end) for each member; the opening brace is already consumed."""
    kind, key = reader.token()
    if kind == DELIMITER and key == '}':
        return
    while True:
        if kind != STRING:
            raise JsonStructureError(f'expected object key, got {key!r}', context=reader.snippet())
        reader.expect(':', f'after object key {key!r}')
        start, end = _value_span(reader)
        yield key, start, end
        if _after_value(reader, '}'):
            return
        kind, key = reader.token()


def _array_elements(reader: TokenReader) -> Iterator[Tuple[int, int]]:
    """Yields (start, end) for each element; the opening bracket is already consumed."""
    reader.skip_whitespace()
    if reader.text.startswith(']', reader.pos):
        reader.pos += 1
        return
    while True:
        yield _value_span(reader)
        if _after_value(reader, ']'):
            return


def _open(data: JsonText, opener: str) -> Tuple[str, TokenReader]:
    text = _as_text(data)
    reader = TokenReader(text)
    kind, value = reader.token()
    if kind != DELIMITER or value != opener:
        expected = 'object' if opener == '{' else 'array'
        raise JsonStructureError(f'expected start of {expected}', context=text[:40])
    return text, reader


def _close(reader: TokenReader) -> None:
    reader.skip_whitespace()
    if reader.pos < len(reader.text):
        raise JsonStructureError('unexpected content after top-level value', context=reader.snippet())


def members_in_order(data: JsonText) -> List[Tuple[str, str]]:
    """
    Returns the (key, raw value text) pairs of a JSON object in source order.

    The whole text must be a single well-formed JSON object; nested values
    are checked for well-formedness while they are skipped.

    Args:
        data: Raw JSON text (bytes are decoded as UTF-8) that must encode an object.

    Returns:
        List[Tuple[str, str]]: The members; values are undecoded JSON text.
    """
    text, reader = _open(data, '{')
    members = [(key, text[start:end]) for key, start, end in _object_members(reader)]
    _close(reader)
    return members


def keys_in_order(data: JsonText) -> List[str]:
    """Returns the keys of a JSON object in their source order."""
    return [key for key, _ in members_in_order(data)]


def elements_in_order(data: JsonText) -> List[str]:
    """Returns the raw text of each element of a JSON array."""
    text, reader = _open(data, '[')
    elements = [text[start:end] for start, end in _array_elements(reader)]
    _close(reader)
    return elements
