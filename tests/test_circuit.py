"""Tests for constraint evaluation and the step circuit."""

import numpy as np
import pytest

from circom.circuit import LinearCombination, StepCircuit
from circom.r1cs import load_r1cs_from_bytes
from primitives.errors import MalformedContainer, WitnessShapeMismatch
from primitives.field import PALLAS_SCALAR_FIELD
from tests.circuits import TOY_R1CS, toy_witness

FF = PALLAS_SCALAR_FIELD


@pytest.fixture
def toy_r1cs():
    return load_r1cs_from_bytes(TOY_R1CS)


def test_linear_combination_evaluate():
    lc = LinearCombination(np.array([0, 2], dtype=np.uint32), FF([3, 5]))
    z = FF([1, 100, 7])
    assert lc.evaluate(z) == FF(3 + 35)
    assert len(lc) == 2
    assert [t.wire_index for t in lc] == [0, 2]


def test_empty_linear_combination_evaluates_to_zero():
    lc = LinearCombination(np.zeros(0, dtype=np.uint32), FF.Zeros(0))
    assert lc.evaluate(FF([1, 2])) == FF(0)


def test_public_outputs_and_inputs(toy_r1cs):
    circuit = StepCircuit(toy_r1cs, FF(toy_witness([10, 10], 3)))
    assert circuit.arity == 2
    assert [int(x) for x in circuit.get_public_outputs()] == [13, 20]
    assert [int(x) for x in circuit.get_public_inputs()] == [10, 10]


def test_satisfied_witness(toy_r1cs):
    circuit = StepCircuit(toy_r1cs, FF(toy_witness([4, 9], 2)))
    assert circuit.is_satisfied()
    assert circuit.unsatisfied_constraints() == []


def test_unsatisfied_witness(toy_r1cs):
    values = toy_witness([4, 9], 2)
    values[6] += 1  # break the multiplication gate
    circuit = StepCircuit(toy_r1cs, FF(values))
    assert not circuit.is_satisfied()
    assert circuit.unsatisfied_constraints() == [2]


def test_witness_length_must_match_wires(toy_r1cs):
    with pytest.raises(WitnessShapeMismatch):
        StepCircuit(toy_r1cs, FF([1, 2, 3]))


def test_wire_zero_must_be_one(toy_r1cs):
    values = toy_witness([1, 1], 1)
    values[0] = 2
    with pytest.raises(MalformedContainer):
        StepCircuit(toy_r1cs, FF(values))


def test_shape_only_circuit(toy_r1cs):
    circuit = StepCircuit(toy_r1cs)
    assert circuit.arity == 2
    with pytest.raises(ValueError, match="no witness"):
        circuit.get_public_outputs()
