"""
Short ID presentation of canonical object identifiers.

Canonical ids are 17-digit numeric strings laid out as::

    1 TTT SSSSSSSSSSSSS
    |  |        └── serial (13 digits)
    |  └── object type code (3 digits)
    └── constant leading digit

The short form is the type code as a single base-62 character followed by the
base-62 encoding of ``serial + salt``. Examples with the default salt (100)::

    "10010000000000001" -> "11D"
    "10020000000000250" -> "25E"
"""

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_INDEX = {char: position for position, char in enumerate(ALPHABET)}
_BASE = len(ALPHABET)

CANONICAL_LENGTH = 17
SERIAL_LENGTH = 13


def _to_base62(number: int) -> str:
    if number == 0:
        return ALPHABET[0]
    digits = []
    while number > 0:
        number, remainder = divmod(number, _BASE)
        digits.append(ALPHABET[remainder])
    return "".join(reversed(digits))


def _from_base62(value: str) -> int:
    number = 0
    for char in value:
        number = number * _BASE + _INDEX[char]
    return number


def is_canonical(object_id: str) -> bool:
    """Check whether the id is in canonical (storage) form."""
    return len(object_id) == CANONICAL_LENGTH and object_id.isdigit() and object_id[0] == "1"


class ShortIdCodec:
    """
    Converts object ids between canonical and short presentation form.

    Both directions are tolerant: values that are not in the expected input
    form are returned unchanged, so decoding an id that is already canonical
    is a no-op.
    """

    def __init__(self, salt: int = 100):
        if salt < 0:
            raise ValueError("Short ID salt must be non-negative")
        self.salt = salt

    def encode(self, object_id: str) -> str:
        """Canonical id -> short id."""
        if not is_canonical(object_id):
            return object_id
        type_code = int(object_id[1:4])
        if type_code >= _BASE:
            return object_id
        serial = int(object_id[4:])
        return ALPHABET[type_code] + _to_base62(serial + self.salt)

    def decode(self, object_id: str) -> str:
        """Short id -> canonical id. Plain numeric ids are never short ids."""
        if not object_id or object_id.isdigit():
            return object_id
        if len(object_id) < 2 or any(char not in _INDEX for char in object_id):
            return object_id
        type_code = _INDEX[object_id[0]]
        serial = _from_base62(object_id[1:]) - self.salt
        if serial < 0 or len(str(serial)) > SERIAL_LENGTH:
            return object_id
        return f"1{type_code:03d}{serial:0{SERIAL_LENGTH}d}"
