"""
Exit-code encoding of property results.

A check runs in its own process and reports back through its exit status:

    0                 every property passed
    1..255            8-bit complement of the bitmask of passing properties
    COLLAPSED_FAILURE more than MAX_ATTRIBUTABLE properties, and some failed

The complement keeps "all failed" away from 0, which would read as success.
POSIX exit statuses are 8 bits wide, so at most eight properties can be
attributed individually; beyond that the outcome collapses to a plain failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

# Imported for annotations only: the source of this module is also embedded
# verbatim in the generated check scripts, which cannot import the package.
if TYPE_CHECKING:
    from repair.models import Outcome

MAX_ATTRIBUTABLE = 8
_MASK = (1 << MAX_ATTRIBUTABLE) - 1

COLLAPSED_FAILURE = 255


def bools_to_bits(results: Sequence[bool]) -> int:
    """Pack booleans into an int, result i at bit i."""
    if len(results) > MAX_ATTRIBUTABLE:
        raise ValueError(f"Only {MAX_ATTRIBUTABLE} results fit in an exit code, got {len(results)}")
    bits = 0
    for i, passed in enumerate(results):
        if passed:
            bits |= 1 << i
    return bits


def bits_to_bools(bits: int, n: int = MAX_ATTRIBUTABLE) -> tuple:
    return tuple(bool(bits & (1 << i)) for i in range(n))


def encode_exit_code(results: Sequence[bool]) -> int:
    if all(results):
        return 0
    if len(results) > MAX_ATTRIBUTABLE:
        return COLLAPSED_FAILURE
    return ~bools_to_bits(results) & _MASK


def decode_exit_code(exit_code: int, n_properties: int) -> Outcome:
    """
    Turn a check's exit status back into an outcome.

    Negative codes (killed, timed out) carry no information and read as a
    plain failure, as does any failure when more than MAX_ATTRIBUTABLE
    properties were checked.
    """
    if exit_code == 0:
        return True
    if exit_code < 0 or n_properties > MAX_ATTRIBUTABLE:
        return False
    return bits_to_bools(~exit_code & _MASK, n_properties)
