"""Reference folding backend.

Not a proof system: the "accumulator" simply records the chain it was shown
after checking every step circuit directly against its constraints. It gives
the driver a deterministic collaborator with the same call contract as a real
scheme, which is what tests and circuit debugging need.
"""

from dataclasses import dataclass, replace

import galois

from circom.circuit import StepCircuit
from circom.r1cs import CircuitDefinition
from folding.backend import FoldingBackend


@dataclass
class ReferenceParams:
    """Shape the backend was set up for."""
    num_variables: int
    num_inputs: int
    num_outputs: int
    num_constraints: int


@dataclass
class ReferenceAccumulator:
    """Chain state: initial input, current output, steps folded so far."""
    z0: galois.FieldArray
    zi: galois.FieldArray
    num_steps: int = 0


class ReferenceFoldingBackend(FoldingBackend):
    """Checks each step instead of folding it."""

    def setup(self, r1cs: CircuitDefinition) -> ReferenceParams:
        if r1cs.num_inputs - 1 != 2 * r1cs.num_outputs:
            raise ValueError(
                f"Step circuits need as many public inputs as outputs "
                f"(num_inputs={r1cs.num_inputs}, num_outputs={r1cs.num_outputs})"
            )
        return ReferenceParams(
            num_variables=r1cs.num_variables,
            num_inputs=r1cs.num_inputs,
            num_outputs=r1cs.num_outputs,
            num_constraints=r1cs.num_constraints,
        )

    def new(self, params: ReferenceParams, circuit: StepCircuit, z0: galois.FieldArray) -> ReferenceAccumulator:
        self._check_shape(params, circuit)
        if len(z0) != params.num_outputs:
            raise ValueError(f"z0 has {len(z0)} entries, expected {params.num_outputs}")
        return ReferenceAccumulator(z0=z0.copy(), zi=z0.copy())

    def prove_step(self, params: ReferenceParams, accumulator: ReferenceAccumulator,
                   circuit: StepCircuit) -> ReferenceAccumulator:
        self._check_shape(params, circuit)

        step_in = circuit.get_public_inputs()
        if not _equal(step_in, accumulator.zi):
            raise ValueError(
                f"Step {accumulator.num_steps} input {[int(x) for x in step_in]} "
                f"does not continue the chain at {[int(x) for x in accumulator.zi]}"
            )
        unsatisfied = circuit.unsatisfied_constraints()
        if unsatisfied:
            raise ValueError(
                f"Step {accumulator.num_steps} witness violates constraints {unsatisfied}"
            )

        # The input accumulator stays valid for retrying from this point.
        return replace(
            accumulator,
            zi=circuit.get_public_outputs().copy(),
            num_steps=accumulator.num_steps + 1,
        )

    def verify(self, params: ReferenceParams, accumulator: ReferenceAccumulator,
               num_steps: int, z0: galois.FieldArray) -> galois.FieldArray:
        if accumulator.num_steps != num_steps:
            raise ValueError(
                f"Accumulator folded {accumulator.num_steps} steps, expected {num_steps}"
            )
        if not _equal(accumulator.z0, z0):
            raise ValueError("Accumulator was seeded from a different z0")
        return accumulator.zi

    def _check_shape(self, params: ReferenceParams, circuit: StepCircuit) -> None:
        if circuit.r1cs.num_variables != params.num_variables:
            raise ValueError(
                f"Circuit has {circuit.r1cs.num_variables} wires, params expect {params.num_variables}"
            )


def _equal(a: galois.FieldArray, b: galois.FieldArray) -> bool:
    return len(a) == len(b) and all(int(x) == int(y) for x, y in zip(a, b))
