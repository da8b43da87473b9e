"""Public diary identifiers.

Account ids are never put in shareable URLs directly; they are scaled by a
fixed factor and wrapped as ``DIARY-<n>-ID``. Decoding is strict: anything that
is not exactly the spelling :func:`encode_diary_id` produces is rejected.
"""

import re

from diary_client.errors import InvalidResourceError

_FACTOR = 17
# Far above any real account id, and well under the interpreter's int-parsing limit.
_MAX_DIGITS = 64
_PATTERN = re.compile(rf"DIARY-([1-9][0-9]{{0,{_MAX_DIGITS - 1}}})-ID")


def encode_diary_id(account_id: int) -> str:
    if isinstance(account_id, bool) or not isinstance(account_id, int) or account_id <= 0:
        raise ValueError(f"account id must be a positive integer, got {account_id!r}")
    return f"DIARY-{account_id * _FACTOR}-ID"


def decode_diary_id(public_id: object) -> int | None:
    if not isinstance(public_id, str):
        return None
    match = _PATTERN.fullmatch(public_id)
    if match is None:
        return None
    encoded = int(match.group(1))
    account_id, remainder = divmod(encoded, _FACTOR)
    if remainder != 0 or account_id <= 0:
        return None
    return account_id


def require_account_id(public_id: object) -> int:
    account_id = decode_diary_id(public_id)
    if account_id is None:
        raise InvalidResourceError(f"Invalid diary id: {public_id!r}")
    return account_id
