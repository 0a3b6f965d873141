"""Circom .wtns witness parser and writer.

Layout, with magic "wtns", version <= 2 and exactly two sections in order:

    Section 1 (header), size 4 + field_size + 4:
        u32 field_size          must be 32
        field_size bytes prime
        u32 witness_len
    Section 2 (values), size witness_len * field_size:
        witness_len field elements, one per wire

Any deviation fails the whole parse; a partial witness is never returned.
"""

import io
from pathlib import Path
from typing import BinaryIO, Iterable, Union

import galois

from primitives.bin_file import BinFileReader, write_bin_file
from primitives.errors import MalformedContainer, TruncatedSection, UnsupportedField
from primitives.field import (
    FIELD_SIZE,
    PALLAS_SCALAR_FIELD,
    FieldElement,
    decode_field_elements,
    encode_field_element,
    encode_field_elements,
)

WTNS_MAGIC = b'wtns'
WTNS_MAX_VERSION = 2
WTNS_WRITE_VERSION = 2

HEADER_SECTION = 1
WITNESS_SECTION = 2
N_SECTIONS = 2


def read_witness(stream: BinaryIO, field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> galois.FieldArray:
    """Parse a wtns container into a witness vector.

    Raises:
        MalformedContainer: Bad magic/version, section count or order, header size
        UnsupportedField: field_size other than 32 or a non-canonical element
        TruncatedSection: Values section size disagrees with witness_len
    """
    reader = BinFileReader(stream, WTNS_MAGIC, WTNS_MAX_VERSION)
    if reader.n_sections != N_SECTIONS:
        raise MalformedContainer(f"Invalid num sections: expected {N_SECTIONS}, got {reader.n_sections}")
    if reader.section_order != [HEADER_SECTION, WITNESS_SECTION]:
        raise MalformedContainer(f"Invalid section types: {reader.section_order}")

    size = reader.start_read_section(HEADER_SECTION)
    field_size = reader.read_u32_le()
    if field_size != FIELD_SIZE:
        raise UnsupportedField(f"Invalid field byte size: {field_size}")
    if size != 4 + field_size + 4:
        raise MalformedContainer(f"Invalid header section size: {size}")
    reader.read_bytes(field_size)  # prime; elements are checked against the target field
    witness_len = reader.read_u32_le()
    reader.end_read_section()

    size = reader.section_size(WITNESS_SECTION)
    if size != witness_len * field_size:
        raise TruncatedSection(
            f"Invalid witness section size {size}, expected {witness_len * field_size}"
        )
    reader.start_read_section(WITNESS_SECTION)
    values = decode_field_elements(reader.read_bytes(size), field)
    reader.end_read_section()
    return values


def load_witness_from_file(file_path: Union[str, Path], field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> galois.FieldArray:
    """Load a witness vector from a .wtns file."""
    with open(file_path, 'rb') as f:
        return read_witness(f, field)


def load_witness_from_bytes(data: bytes, field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> galois.FieldArray:
    """Load a witness vector from in-memory wtns bytes."""
    return read_witness(io.BytesIO(data), field)


def write_witness(values: Iterable[FieldElement], prime: int) -> bytes:
    """Serialize a witness vector as a wtns container.

    Args:
        values: Witness values, wire 0 first
        prime: Field modulus recorded in the header

    Returns:
        Container bytes, readable by read_witness
    """
    body = encode_field_elements(values)
    witness_len = len(body) // FIELD_SIZE
    header = (
        FIELD_SIZE.to_bytes(4, "little")
        + encode_field_element(prime)
        + witness_len.to_bytes(4, "little")
    )
    return write_bin_file(WTNS_MAGIC, WTNS_WRITE_VERSION, [
        (HEADER_SECTION, header),
        (WITNESS_SECTION, body),
    ])
