"""Circom - r1cs/wtns parsers, step circuit and witness generation."""

from circom.circuit import Constraint, LinearCombination, StepCircuit, Term
from circom.r1cs import (
    CircuitDefinition,
    Header,
    R1CSFile,
    load_r1cs,
    load_r1cs_from_bytes,
    read_r1cs,
    read_r1cs_file,
)
from circom.witness import (
    load_witness_from_bytes,
    load_witness_from_file,
    read_witness,
    write_witness,
)
from circom.witness_generator import CircomWitnessGenerator, WitnessGenerator

__all__ = [
    # Constraint system
    "Term",
    "LinearCombination",
    "Constraint",
    "StepCircuit",
    # r1cs
    "Header",
    "R1CSFile",
    "CircuitDefinition",
    "read_r1cs_file",
    "read_r1cs",
    "load_r1cs",
    "load_r1cs_from_bytes",
    # wtns
    "read_witness",
    "load_witness_from_file",
    "load_witness_from_bytes",
    "write_witness",
    # Witness generation
    "WitnessGenerator",
    "CircomWitnessGenerator",
]
