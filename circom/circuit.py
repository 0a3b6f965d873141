"""R1CS constraint types and the step circuit.

A constraint row is A·z ∘ B·z = C·z where each of A, B, C is a sparse linear
combination over the wire vector z. Circom lays z out as

    z = [1, public outputs..., public inputs..., private inputs..., aux...]

so wire 0 is the constant one and the public outputs of a step occupy wires
1..n_pub_out.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, NamedTuple, Optional

import galois
import numpy as np

from primitives.errors import WitnessShapeMismatch

if TYPE_CHECKING:
    from circom.r1cs import CircuitDefinition


class Term(NamedTuple):
    """One (wire, coefficient) entry of a sparse linear combination."""
    wire_index: int
    coeff: galois.FieldArray


@dataclass
class LinearCombination:
    """Sparse linear combination over wires.

    Attributes:
        wires: Wire indices (uint32), in file order
        coeffs: Coefficients as a field array, aligned with ``wires``
    """
    wires: np.ndarray
    coeffs: galois.FieldArray

    def __len__(self) -> int:
        return len(self.wires)

    def __getitem__(self, i: int) -> Term:
        return Term(int(self.wires[i]), self.coeffs[i])

    def __iter__(self) -> Iterator[Term]:
        for i in range(len(self)):
            yield self[i]

    def evaluate(self, z: galois.FieldArray) -> galois.FieldArray:
        """Compute sum(coeff * z[wire])."""
        if len(self) == 0:
            return type(z)(0)
        return np.sum(self.coeffs * z[self.wires])


@dataclass
class Constraint:
    """One R1CS row: a·z * b·z == c·z."""
    a: LinearCombination
    b: LinearCombination
    c: LinearCombination

    def __iter__(self) -> Iterator[LinearCombination]:
        return iter((self.a, self.b, self.c))

    def is_satisfied(self, z: galois.FieldArray) -> bool:
        return bool(self.a.evaluate(z) * self.b.evaluate(z) == self.c.evaluate(z))


@dataclass
class StepCircuit:
    """A circuit definition bound to (optionally) one step's witness.

    With ``witness=None`` the circuit carries only shape, which is what a
    folding backend needs for setup.
    """
    r1cs: 'CircuitDefinition'
    witness: Optional[galois.FieldArray] = None

    def __post_init__(self) -> None:
        if self.witness is None:
            return
        n = len(self.witness)
        if n != self.r1cs.num_variables:
            raise WitnessShapeMismatch(
                f"Witness has {n} entries but circuit has {self.r1cs.num_variables} wires"
            )
        if n > 0 and self.witness[0] != 1:
            raise WitnessShapeMismatch(f"Witness wire 0 must be 1, got {int(self.witness[0])}")

    @property
    def arity(self) -> int:
        """Number of values carried between steps."""
        return self.r1cs.num_outputs

    def _require_witness(self) -> galois.FieldArray:
        if self.witness is None:
            raise ValueError("Step circuit has no witness")
        return self.witness

    def get_public_outputs(self) -> galois.FieldArray:
        """Public output wires, in wire order."""
        z = self._require_witness()
        return z[1:1 + self.r1cs.num_outputs]

    def get_public_inputs(self) -> galois.FieldArray:
        """Public input wires (the step_in the witness was generated from)."""
        z = self._require_witness()
        return z[1 + self.r1cs.num_outputs:self.r1cs.num_inputs]

    def unsatisfied_constraints(self) -> List[int]:
        """Indices of constraint rows the witness violates."""
        z = self._require_witness()
        return [i for i, c in enumerate(self.r1cs.constraints) if not c.is_satisfied(z)]

    def is_satisfied(self) -> bool:
        return not self.unsatisfied_constraints()
