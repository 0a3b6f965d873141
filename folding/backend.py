"""Folding backend contract.

The step driver never does folding math itself. Whatever implements the
scheme (a Nova binding, a remote prover, the reference backend in
folding/reference.py) is reached through this narrow interface.
"""

from abc import ABC, abstractmethod
from typing import Any

import galois

from circom.circuit import StepCircuit
from circom.r1cs import CircuitDefinition


class FoldingBackend(ABC):
    """Incremental-proving scheme consumed by the step driver.

    Params and accumulators are opaque to the driver: it only threads them
    from one call to the next.
    """

    @abstractmethod
    def setup(self, r1cs: CircuitDefinition) -> Any:
        """Produce public parameters for circuits of this shape."""
        pass

    @abstractmethod
    def new(self, params: Any, circuit: StepCircuit, z0: galois.FieldArray) -> Any:
        """Create an accumulator from the first step circuit and initial input."""
        pass

    @abstractmethod
    def prove_step(self, params: Any, accumulator: Any, circuit: StepCircuit) -> Any:
        """Fold one step circuit into the accumulator.

        Returns:
            The updated accumulator (may be the same object, mutated)

        Raises:
            Exception: Any failure; the driver reports it as FoldStepFailure
        """
        pass

    @abstractmethod
    def verify(self, params: Any, accumulator: Any, num_steps: int, z0: galois.FieldArray) -> galois.FieldArray:
        """Check the accumulator attests to num_steps steps from z0.

        Returns:
            Final public output z_n

        Raises:
            ValueError: If the accumulator is rejected
        """
        pass


def create_public_params(r1cs: CircuitDefinition, backend: FoldingBackend) -> Any:
    """Run backend setup for a circuit definition."""
    return backend.setup(r1cs)
