"""Tests for r1cs.py - Circom circuit definition parser."""

import io
import logging
import struct

import pytest

from circom.r1cs import (
    CircuitDefinition,
    R1CSFile,
    _read_header,
    load_r1cs,
    load_r1cs_from_bytes,
    read_r1cs,
    read_r1cs_file,
)
from primitives.bin_file import BinFileReader, write_bin_file
from primitives.errors import (
    MalformedContainer,
    TruncatedSection,
    UnsupportedField,
    WireMapInvariantViolation,
)
from primitives.field import BN254_SCALAR_FIELD, PALLAS_SCALAR_FIELD, PALLAS_SCALAR_PRIME
from tests.circuits import (
    SAMPLE_PRIME,
    SAMPLE_R1CS,
    TOY_CONSTRAINTS,
    TOY_R1CS,
    build_r1cs,
    encode_lc,
    r1cs_header,
)


def parse_sample() -> R1CSFile:
    return read_r1cs_file(io.BytesIO(SAMPLE_R1CS), BN254_SCALAR_FIELD)


def test_sample_header():
    file = parse_sample()
    assert file.version == 1

    header = file.header
    assert header.field_size == 32
    assert header.prime_size == bytes.fromhex(
        "010000f093f5e1439170b97948e833285d588181b64550b829a031e1724e6430"
    )
    assert header.prime == SAMPLE_PRIME
    assert header.n_wires == 7
    assert header.n_pub_out == 1
    assert header.n_pub_in == 2
    assert header.n_prv_in == 3
    assert header.n_labels == 0x03e8
    assert header.n_constraints == 3


def test_sample_constraints():
    file = parse_sample()

    assert len(file.constraints) == 3
    assert len(file.constraints[0].a) == 2
    assert file.constraints[0].a[0].wire_index == 5
    assert int(file.constraints[0].a[0].coeff) == 3
    assert file.constraints[2].b[0].wire_index == 0
    assert int(file.constraints[2].b[0].coeff) == 6
    assert len(file.constraints[1].c) == 0
    assert int(file.constraints[2].c[0].coeff) == 600


def test_sample_wire_mapping():
    file = parse_sample()
    assert file.wire_mapping == [0, 3, 10, 11, 12, 15, 324]
    assert file.wire_mapping[1] == 3


def test_sample_circuit_definition():
    r1cs = load_r1cs_from_bytes(SAMPLE_R1CS, BN254_SCALAR_FIELD)
    assert isinstance(r1cs, CircuitDefinition)
    assert r1cs.num_inputs == 1 + 2 + 1
    assert r1cs.num_variables == 7
    assert r1cs.num_aux == r1cs.num_variables - r1cs.num_inputs == 3
    assert r1cs.num_outputs == 1
    assert r1cs.num_constraints == 3
    assert r1cs.field is BN254_SCALAR_FIELD


def test_prime_mismatch_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="circom.r1cs"):
        read_r1cs(io.BytesIO(SAMPLE_R1CS), PALLAS_SCALAR_FIELD)
    assert "differs from target field" in caplog.text


def test_load_r1cs_from_file(tmp_path):
    path = tmp_path / "toy.r1cs"
    path.write_bytes(TOY_R1CS)
    r1cs = load_r1cs(path)
    assert r1cs.num_constraints == len(TOY_CONSTRAINTS)
    assert r1cs.num_inputs == 5
    assert r1cs.num_aux == 2


def test_sections_in_any_order():
    header = r1cs_header(2, 0, 0, 1, 1)
    body = encode_lc([(1, 1)]) + encode_lc([(1, 1)]) + encode_lc([(1, 1)])
    wmap = struct.pack('<QQ', 0, 1)
    data = write_bin_file(b'r1cs', 1, [(3, wmap), (2, body), (1, header)])
    r1cs = load_r1cs_from_bytes(data)
    assert r1cs.num_constraints == 1


def test_header_size_mismatch():
    buf = struct.pack('<I', 32) + bytes(32)
    data = write_bin_file(b'r1cs', 1, [(1, buf)])
    reader = BinFileReader.from_bytes(data, b'r1cs', 1)
    with pytest.raises(MalformedContainer, match="header section size"):
        _read_header(reader)


def test_header_with_trailing_byte_is_not_truncated_silently():
    header = r1cs_header(2, 0, 0, 1, 0) + b'\x00'
    data = write_bin_file(b'r1cs', 1, [(1, header), (2, b''), (3, struct.pack('<QQ', 0, 1))])
    with pytest.raises(MalformedContainer, match="header section size"):
        load_r1cs_from_bytes(data)


def test_unsupported_field_size():
    header = (
        struct.pack('<I', 8) + bytes(8)
        + struct.pack('<IIIIQI', 1, 0, 0, 0, 0, 0)
    )
    data = write_bin_file(b'r1cs', 1, [(1, header), (2, b''), (3, struct.pack('<Q', 0))])
    with pytest.raises(UnsupportedField):
        load_r1cs_from_bytes(data)


def test_wire_zero_must_map_to_label_zero():
    data = build_r1cs(7, 2, 2, 1, TOY_CONSTRAINTS, wire_map=[1, 2, 3, 4, 5, 6, 7])
    with pytest.raises(WireMapInvariantViolation):
        load_r1cs_from_bytes(data)


def test_empty_wire_map_rejected():
    data = build_r1cs(0, 0, 0, 0, [])
    with pytest.raises(WireMapInvariantViolation):
        load_r1cs_from_bytes(data)


def test_wire_map_size_mismatch():
    data = build_r1cs(7, 2, 2, 1, TOY_CONSTRAINTS, wire_map=range(6))
    with pytest.raises(MalformedContainer, match="map section size"):
        load_r1cs_from_bytes(data)


@pytest.mark.parametrize("missing", [1, 2, 3])
def test_missing_section(missing):
    sections = [
        (1, r1cs_header(2, 0, 0, 1, 0)),
        (2, b''),
        (3, struct.pack('<QQ', 0, 1)),
    ]
    data = write_bin_file(b'r1cs', 1, [s for s in sections if s[0] != missing])
    with pytest.raises(MalformedContainer, match="does not exist"):
        load_r1cs_from_bytes(data)


def test_bad_magic():
    with pytest.raises(MalformedContainer):
        load_r1cs_from_bytes(b'wtns' + SAMPLE_R1CS[4:])


@pytest.mark.parametrize("version", [0, 2])
def test_only_version_one(version):
    data = build_r1cs(7, 2, 2, 1, TOY_CONSTRAINTS, version=version)
    with pytest.raises(MalformedContainer, match="version"):
        load_r1cs_from_bytes(data)


def test_trailing_bytes_in_constraints_section():
    header = r1cs_header(2, 0, 0, 1, 1)
    body = encode_lc([]) + encode_lc([]) + encode_lc([(1, 1)]) + b'\x00' * 4
    data = write_bin_file(b'r1cs', 1, [(1, header), (2, body), (3, struct.pack('<QQ', 0, 1))])
    with pytest.raises(TruncatedSection):
        load_r1cs_from_bytes(data)


def test_constraint_count_exceeds_section():
    header = r1cs_header(2, 0, 0, 1, 2)
    body = encode_lc([]) + encode_lc([]) + encode_lc([(1, 1)])
    data = write_bin_file(b'r1cs', 1, [(1, header), (2, body), (3, struct.pack('<QQ', 0, 1))])
    with pytest.raises(TruncatedSection):
        load_r1cs_from_bytes(data)


def test_non_canonical_coefficient():
    data = build_r1cs(2, 0, 0, 1, [([(1, PALLAS_SCALAR_PRIME)], [], [])])
    with pytest.raises(UnsupportedField):
        load_r1cs_from_bytes(data, PALLAS_SCALAR_FIELD)


def test_more_inputs_than_wires():
    data = build_r1cs(3, 2, 2, 0, [])
    with pytest.raises(MalformedContainer):
        load_r1cs_from_bytes(data)
