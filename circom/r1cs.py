"""Circom .r1cs circuit definition parser.

File layout (all integers little-endian), on top of the common container
described in primitives/bin_file.py with magic "r1cs" and version 1:

    Section 1 (header):
        u32 field_size                  must be 32
        field_size bytes prime          little-endian modulus
        u32 n_wires
        u32 n_pub_out
        u32 n_pub_in
        u32 n_prv_in
        u64 n_labels
        u32 n_constraints
    Section 2 (constraints):
        n_constraints x (A, B, C), each a sparse vector:
            u32 count, then count x (u32 wire_index, field_size-byte element)
    Section 3 (wire to label map):
        n_wires x u64 label             label[0] must be 0

Sections are located through the reader's offset table, so they may appear in
the file in any order. Only byte-level shape is validated here; whether the
constraints are arithmetically meaningful is not.
"""

import io
import logging
from dataclasses import dataclass, field as dc_field
from pathlib import Path
from typing import BinaryIO, List, Union

import galois
import numpy as np

from circom.circuit import Constraint, LinearCombination
from primitives.bin_file import BinFileReader
from primitives.errors import (
    MalformedContainer,
    UnsupportedField,
    WireMapInvariantViolation,
)
from primitives.field import FIELD_SIZE, PALLAS_SCALAR_FIELD, decode_field_elements

LOGGER = logging.getLogger(__name__)

R1CS_MAGIC = b'r1cs'
R1CS_VERSION = 1

# Section IDs
HEADER_SECTION = 1
CONSTRAINTS_SECTION = 2
WIRE2LABEL_SECTION = 3

# Fixed part of the header: eight u32/u64 words around the prime
HEADER_FIXED_SIZE = 32

_TERM_SIZE = 4 + FIELD_SIZE


@dataclass
class Header:
    """Decoded r1cs header section.

    Attributes:
        field_size: Byte width of a field element (always 32 once parsed)
        prime_size: Modulus bytes as stored, little-endian
        n_wires: Total wires, including the constant-one wire 0
        n_pub_out: Public outputs
        n_pub_in: Public inputs
        n_prv_in: Private inputs
        n_labels: Signal labels in the source circuit
        n_constraints: Constraint rows
    """
    field_size: int = 0
    prime_size: bytes = b""
    n_wires: int = 0
    n_pub_out: int = 0
    n_pub_in: int = 0
    n_prv_in: int = 0
    n_labels: int = 0
    n_constraints: int = 0

    @property
    def prime(self) -> int:
        return int.from_bytes(self.prime_size, "little")


@dataclass
class CircuitDefinition:
    """Constraint system shared, read-only, by every step of a run.

    Attributes:
        num_aux: Wires that are neither the constant nor public
        num_inputs: 1 + public inputs + public outputs
        num_variables: Total wires (n_wires)
        constraints: Constraint rows
        num_outputs: Public outputs, i.e. the step arity
        field: galois field the coefficients live in
    """
    num_aux: int
    num_inputs: int
    num_variables: int
    constraints: List[Constraint]
    num_outputs: int = 0
    field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)


@dataclass
class R1CSFile:
    """Full parse result of an r1cs container."""
    version: int
    header: Header
    constraints: List[Constraint] = dc_field(default_factory=list)
    wire_mapping: List[int] = dc_field(default_factory=list)

    def to_circuit_definition(self, field: type[galois.FieldArray]) -> CircuitDefinition:
        """Derive the constraint system view of this file."""
        num_inputs = 1 + self.header.n_pub_in + self.header.n_pub_out
        num_variables = self.header.n_wires
        if num_variables < num_inputs:
            raise MalformedContainer(
                f"Circuit declares {num_inputs} input wires but only {num_variables} wires"
            )
        return CircuitDefinition(
            num_aux=num_variables - num_inputs,
            num_inputs=num_inputs,
            num_variables=num_variables,
            constraints=self.constraints,
            num_outputs=self.header.n_pub_out,
            field=field,
        )


# --- Section Parsers ---

def _read_header(reader: BinFileReader) -> Header:
    size = reader.start_read_section(HEADER_SECTION)
    field_size = reader.read_u32_le()
    if size != HEADER_FIXED_SIZE + field_size:
        raise MalformedContainer(
            f"Invalid header section size: {size}, expected {HEADER_FIXED_SIZE + field_size}"
        )

    header = Header(
        field_size=field_size,
        prime_size=reader.read_bytes(field_size),
        n_wires=reader.read_u32_le(),
        n_pub_out=reader.read_u32_le(),
        n_pub_in=reader.read_u32_le(),
        n_prv_in=reader.read_u32_le(),
        n_labels=reader.read_u64_le(),
        n_constraints=reader.read_u32_le(),
    )
    reader.end_read_section()

    if header.field_size != FIELD_SIZE:
        raise UnsupportedField(
            f"This parser only supports {FIELD_SIZE}-byte fields, got {header.field_size}"
        )
    return header


def _read_linear_combination(reader: BinFileReader, field: type[galois.FieldArray]) -> LinearCombination:
    n_terms = reader.read_u32_le()
    raw = reader.read_bytes(n_terms * _TERM_SIZE)
    if n_terms == 0:
        return LinearCombination(np.zeros(0, dtype=np.uint32), field.Zeros(0))

    # Terms are (u32 wire, 32-byte element) pairs; split the two columns.
    rows = np.frombuffer(raw, dtype=np.uint8).reshape(n_terms, _TERM_SIZE)
    wires = rows[:, :4].copy().view('<u4').reshape(-1).astype(np.uint32)
    coeffs = decode_field_elements(rows[:, 4:].tobytes(), field)
    return LinearCombination(wires, coeffs)


def _read_constraints(reader: BinFileReader, header: Header, field: type[galois.FieldArray]) -> List[Constraint]:
    reader.start_read_section(CONSTRAINTS_SECTION)
    constraints = []
    for _ in range(header.n_constraints):
        constraints.append(Constraint(
            a=_read_linear_combination(reader, field),
            b=_read_linear_combination(reader, field),
            c=_read_linear_combination(reader, field),
        ))
    reader.end_read_section()
    return constraints


def _read_wire_map(reader: BinFileReader, header: Header) -> List[int]:
    size = reader.start_read_section(WIRE2LABEL_SECTION)
    if size != header.n_wires * 8:
        raise MalformedContainer(
            f"Invalid map section size: {size}, expected {header.n_wires * 8}"
        )
    raw = reader.read_bytes(size)
    reader.end_read_section()

    wire_mapping = np.frombuffer(raw, dtype='<u8').tolist()
    if not wire_mapping or wire_mapping[0] != 0:
        raise WireMapInvariantViolation("Wire 0 should always be mapped to 0")
    return wire_mapping


# --- Entry Points ---

def read_r1cs_file(stream: BinaryIO, field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> R1CSFile:
    """Parse an r1cs container from a seekable stream.

    Args:
        stream: Seekable binary stream
        field: Target field for constraint coefficients

    Returns:
        R1CSFile with header, constraints and wire map

    Raises:
        ContainerError: Any subclass, on the first shape violation found
    """
    reader = BinFileReader(stream, R1CS_MAGIC, R1CS_VERSION)
    if reader.version != R1CS_VERSION:
        raise MalformedContainer(f"Unsupported version: expected {R1CS_VERSION}, got {reader.version}")

    header = _read_header(reader)
    if header.prime != field.characteristic:
        LOGGER.warning(
            "r1cs prime %#x differs from target field modulus %#x",
            header.prime, field.characteristic,
        )
    LOGGER.debug("r1cs header: %s", header)

    constraints = _read_constraints(reader, header, field)
    wire_mapping = _read_wire_map(reader, header)

    return R1CSFile(
        version=reader.version,
        header=header,
        constraints=constraints,
        wire_mapping=wire_mapping,
    )


def read_r1cs(stream: BinaryIO, field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> CircuitDefinition:
    """Parse an r1cs container straight into a CircuitDefinition."""
    return read_r1cs_file(stream, field).to_circuit_definition(field)


def load_r1cs(file_path: Union[str, Path], field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> CircuitDefinition:
    """Load a CircuitDefinition from an .r1cs file."""
    with open(file_path, 'rb') as f:
        return read_r1cs(f, field)


def load_r1cs_from_bytes(data: bytes, field: type[galois.FieldArray] = PALLAS_SCALAR_FIELD) -> CircuitDefinition:
    """Load a CircuitDefinition from in-memory r1cs bytes."""
    return read_r1cs(io.BytesIO(data), field)
