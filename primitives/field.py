"""Prime fields and the 32-byte field element codec.

Uses galois library for all field arithmetic. Each supported field is a
galois.GF(p) class built once at import; elements are galois FieldArrays
(numpy object arrays for these ~255-bit primes).

Encoding is the canonical little-endian residue in exactly FIELD_SIZE bytes,
the layout Circom uses in both .r1cs and .wtns files. Decoding is the single
place where out-of-range scalars are caught: a 32-byte pattern whose integer
value is >= p is rejected, never reduced.
"""

from typing import Iterable, List, Union

import galois

from primitives.errors import TruncatedSection, UnsupportedField

FIELD_SIZE = 32
"""Byte width of an encoded field element."""

FieldElement = Union[int, galois.FieldArray]

# --- Field Construction ---

PALLAS_SCALAR_PRIME = 0x40000000000000000000000000000000224698FC0994A8DD8C46EB2100000001
VESTA_SCALAR_PRIME = 0x40000000000000000000000000000000224698FC094CF91B992D30ED00000001
BN254_SCALAR_PRIME = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001

# Multiplicative generators are passed explicitly: galois would otherwise
# factor p - 1 to find one, which is slow for primes this size.
PALLAS_SCALAR_FIELD = galois.GF(PALLAS_SCALAR_PRIME, primitive_element=5, verify=False)
"""Scalar field of Pallas (the base field of Vesta)."""

VESTA_SCALAR_FIELD = galois.GF(VESTA_SCALAR_PRIME, primitive_element=5, verify=False)
"""Scalar field of Vesta (the base field of Pallas)."""

BN254_SCALAR_FIELD = galois.GF(BN254_SCALAR_PRIME, primitive_element=5, verify=False)
"""Scalar field of BN254, the Circom default prime."""

FIELDS = {
    "pallas": PALLAS_SCALAR_FIELD,
    "vesta": VESTA_SCALAR_FIELD,
    "bn254": BN254_SCALAR_FIELD,
    "bn256": BN254_SCALAR_FIELD,
}


def get_field(name: str) -> type[galois.FieldArray]:
    """Look up a supported field by curve name (case-insensitive)."""
    try:
        return FIELDS[name.lower()]
    except KeyError:
        raise KeyError(
            f"Unknown field '{name}'. Supported: {', '.join(sorted(FIELDS))}"
        ) from None


# --- Codec ---

def encode_field_element(x: FieldElement) -> bytes:
    """Encode a field element as FIELD_SIZE little-endian bytes."""
    value = int(x)
    if not 0 <= value < 1 << (8 * FIELD_SIZE):
        raise UnsupportedField(f"Value does not fit in {FIELD_SIZE} bytes: {value}")
    return value.to_bytes(FIELD_SIZE, "little")


def encode_field_elements(values: Iterable[FieldElement]) -> bytes:
    """Encode a sequence of field elements back to back."""
    return b"".join(encode_field_element(v) for v in values)


def _check_canonical(value: int, field: type[galois.FieldArray]) -> int:
    if value >= field.characteristic:
        raise UnsupportedField(
            f"Non-canonical field element {value:#x} "
            f"(modulus {field.characteristic:#x})"
        )
    return value


def decode_field_element(data: bytes, field: type[galois.FieldArray]) -> galois.FieldArray:
    """Decode exactly FIELD_SIZE bytes into an element of ``field``.

    Raises:
        TruncatedSection: If ``data`` is not FIELD_SIZE bytes long
        UnsupportedField: If the encoded integer is not below the modulus
    """
    if len(data) != FIELD_SIZE:
        raise TruncatedSection(f"Expected {FIELD_SIZE} bytes for a field element, got {len(data)}")
    return field(_check_canonical(int.from_bytes(data, "little"), field))


def decode_field_elements(data: bytes, field: type[galois.FieldArray]) -> galois.FieldArray:
    """Decode a run of back-to-back encoded elements into a 1-D field array."""
    if len(data) % FIELD_SIZE != 0:
        raise TruncatedSection(
            f"Element data length {len(data)} is not a multiple of {FIELD_SIZE}"
        )
    ints = [
        _check_canonical(int.from_bytes(data[i:i + FIELD_SIZE], "little"), field)
        for i in range(0, len(data), FIELD_SIZE)
    ]
    if not ints:
        return field.Zeros(0)
    return field(ints)


# --- Interchange Encoding ---
# Public inputs cross the witness-generator boundary as decimal strings.

def to_decimal_strings(values: Iterable[FieldElement]) -> List[str]:
    """Render field elements as base-10 strings."""
    return [str(int(v)) for v in values]


def from_decimal_strings(strings: Iterable[str], field: type[galois.FieldArray]) -> galois.FieldArray:
    """Parse base-10 strings into a field array, rejecting out-of-range values."""
    ints = []
    for s in strings:
        value = int(s, 10)
        if value < 0:
            raise UnsupportedField(f"Negative field element: {s}")
        ints.append(_check_canonical(value, field))
    if not ints:
        return field.Zeros(0)
    return field(ints)


def as_field_array(values: Iterable[FieldElement], field: type[galois.FieldArray]) -> galois.FieldArray:
    """Coerce ints or field elements into a 1-D array over ``field``."""
    if isinstance(values, field):
        return values.reshape(-1)
    ints = [int(v) for v in values]
    if not ints:
        return field.Zeros(0)
    for v in ints:
        if v < 0:
            raise UnsupportedField(f"Negative field element: {v}")
        _check_canonical(v, field)
    return field(ints)
