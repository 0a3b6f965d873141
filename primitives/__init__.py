"""Primitives - Field codec, binary container reader and error taxonomy."""

from primitives.bin_file import BinFileReader, write_bin_file
from primitives.errors import (
    ContainerError,
    ExternalProcessFailure,
    FoldStepFailure,
    MalformedContainer,
    TruncatedSection,
    UnsupportedField,
    WireMapInvariantViolation,
    WitnessShapeMismatch,
)
from primitives.field import (
    BN254_SCALAR_FIELD,
    FIELD_SIZE,
    PALLAS_SCALAR_FIELD,
    VESTA_SCALAR_FIELD,
    decode_field_element,
    decode_field_elements,
    encode_field_element,
    encode_field_elements,
    from_decimal_strings,
    get_field,
    to_decimal_strings,
)

__all__ = [
    # Field
    "FIELD_SIZE",
    "PALLAS_SCALAR_FIELD",
    "VESTA_SCALAR_FIELD",
    "BN254_SCALAR_FIELD",
    "get_field",
    "encode_field_element",
    "encode_field_elements",
    "decode_field_element",
    "decode_field_elements",
    "to_decimal_strings",
    "from_decimal_strings",
    # Binary container
    "BinFileReader",
    "write_bin_file",
    # Errors
    "ContainerError",
    "MalformedContainer",
    "WitnessShapeMismatch",
    "UnsupportedField",
    "TruncatedSection",
    "WireMapInvariantViolation",
    "ExternalProcessFailure",
    "FoldStepFailure",
]
