"""Step driver: folds a sequence of Circom step executions.

Each step turns the current public input z_i and that step's private input
into a witness (through the witness generator), binds it to the shared
circuit definition, folds it into the accumulator and takes the circuit's
public outputs as z_{i+1}. Steps run strictly in order because every witness
depends on the previous step's output.

Two entry points share the same loop and differ only in seeding:

    fold(private_inputs, z0)
        Fresh run. The accumulator is created from step 0's circuit and z0.
    extend(accumulator, last_zi, private_inputs)
        Continuation of an earlier run from its accumulator and last output.

Any failure aborts the run with an exception; a partially folded
accumulator is never returned.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Union

import galois

from circom.circuit import StepCircuit
from circom.r1cs import CircuitDefinition, load_r1cs
from circom.witness import load_witness_from_bytes
from circom.witness_generator import CircomWitnessGenerator, WitnessGenerator
from folding.backend import FoldingBackend
from folding.config import DriverConfig
from primitives.errors import FoldStepFailure
from primitives.field import FieldElement, as_field_array, to_decimal_strings

LOGGER = logging.getLogger(__name__)

PrivateInput = Dict[str, Any]

STEP_IN_KEY = "step_in"


@dataclass
class FoldingRun:
    """Result of a driven run; everything needed to extend it later.

    Attributes:
        accumulator: Backend accumulator after the last step
        z0: Public input the chain started from
        zi: Public output of the last step
        num_steps: Steps folded since z0
    """
    accumulator: Any
    z0: galois.FieldArray
    zi: galois.FieldArray
    num_steps: int


class StepDriver:
    """Drives witness generation and folding for one circuit.

    Attributes:
        r1cs: Circuit definition, shared read-only by every step
        witness_generator: Callable from input document to wtns bytes
        backend: Folding scheme
        params: Backend public parameters for ``r1cs``
    """

    def __init__(
        self,
        r1cs: CircuitDefinition,
        witness_generator: WitnessGenerator,
        backend: FoldingBackend,
        params: Any = None,
    ) -> None:
        self.r1cs = r1cs
        self.witness_generator = witness_generator
        self.backend = backend
        self.params = params if params is not None else backend.setup(r1cs)

    @classmethod
    def from_config(cls, config: DriverConfig, r1cs_path: Union[str, Path],
                    backend: FoldingBackend) -> 'StepDriver':
        """Load the circuit and build a subprocess witness generator from config."""
        r1cs = load_r1cs(r1cs_path, config.scalar_field)
        return cls(r1cs, CircomWitnessGenerator.from_config(config), backend)

    @property
    def field(self) -> type[galois.FieldArray]:
        return self.r1cs.field

    # --- Entry Points ---

    def fold(self, private_inputs: Sequence[PrivateInput],
             z0: Iterable[FieldElement]) -> FoldingRun:
        """Fresh run over ``private_inputs`` starting from ``z0``.

        Raises:
            ValueError: If there are no steps or z0 has the wrong length
            ContainerError: If a witness fails to parse or fit the circuit
            ExternalProcessFailure: If witness generation fails
            FoldStepFailure: If the backend rejects a step
        """
        if not private_inputs:
            raise ValueError("A fresh run needs at least one step")
        z0 = self._public_vector(z0)

        circuit_0 = self.build_step_circuit(z0, private_inputs[0])
        try:
            accumulator = self.backend.new(self.params, circuit_0, z0)
        except Exception as e:
            raise FoldStepFailure(0, f"accumulator setup failed: {e}") from e

        # The seeding circuit is exactly step 0's circuit; reuse it.
        return self._drive(accumulator, z0, z0, 0, private_inputs, first_circuit=circuit_0)

    def extend(self, accumulator: Any, last_zi: Iterable[FieldElement],
               private_inputs: Sequence[PrivateInput],
               z0: Optional[Iterable[FieldElement]] = None,
               num_steps: int = 0) -> FoldingRun:
        """Continue folding from an existing accumulator.

        Args:
            accumulator: Accumulator from an earlier run
            last_zi: Public output of that run's last step
            private_inputs: Private inputs of the new steps
            z0: Original initial input, recorded in the result if given
            num_steps: Steps already folded, recorded in the result
        """
        zi = self._public_vector(last_zi)
        z0 = self._public_vector(z0) if z0 is not None else zi
        return self._drive(accumulator, z0, zi, num_steps, private_inputs)

    def continue_run(self, run: FoldingRun, private_inputs: Sequence[PrivateInput]) -> FoldingRun:
        """Extend a FoldingRun returned by fold() or extend()."""
        return self.extend(run.accumulator, run.zi, private_inputs, z0=run.z0, num_steps=run.num_steps)

    # --- Per-Step Transition ---

    def input_document(self, step_in: galois.FieldArray, private_input: PrivateInput) -> Dict[str, Any]:
        """Interchange document for the witness generator."""
        if STEP_IN_KEY in private_input:
            raise ValueError(f"Private input may not define '{STEP_IN_KEY}'")
        return {STEP_IN_KEY: to_decimal_strings(step_in), **private_input}

    def build_step_circuit(self, step_in: galois.FieldArray, private_input: PrivateInput) -> StepCircuit:
        """Generate, parse and bind one step's witness."""
        document = self.input_document(step_in, private_input)
        witness = load_witness_from_bytes(self.witness_generator(document), self.field)
        return StepCircuit(self.r1cs, witness)

    def _drive(self, accumulator: Any, z0: galois.FieldArray, zi: galois.FieldArray,
               num_steps: int, private_inputs: Sequence[PrivateInput],
               first_circuit: Optional[StepCircuit] = None) -> FoldingRun:
        n = len(private_inputs)
        for i, private_input in enumerate(private_inputs):
            LOGGER.info("Folding step %d/%d (chain step %d)", i + 1, n, num_steps + i)
            LOGGER.debug("step_in: %s", to_decimal_strings(zi))

            if i == 0 and first_circuit is not None:
                circuit = first_circuit
            else:
                circuit = self.build_step_circuit(zi, private_input)
            step_out = circuit.get_public_outputs().copy()

            try:
                accumulator = self.backend.prove_step(self.params, accumulator, circuit)
            except Exception as e:
                raise FoldStepFailure(i, str(e)) from e

            zi = step_out
            LOGGER.debug("step_out: %s", to_decimal_strings(zi))

        return FoldingRun(accumulator=accumulator, z0=z0, zi=zi, num_steps=num_steps + n)

    def _public_vector(self, values: Iterable[FieldElement]) -> galois.FieldArray:
        z = as_field_array(values, self.field)
        if len(z) != self.r1cs.num_outputs:
            raise ValueError(
                f"Public input has {len(z)} entries, circuit arity is {self.r1cs.num_outputs}"
            )
        return z
