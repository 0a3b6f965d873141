"""Error taxonomy for container parsing and step folding.

Parse-time failures derive from ValueError so callers that already guard
against bad input with ``except ValueError`` keep working. Failures raised by
external collaborators (the witness generator and the folding backend) derive
from RuntimeError.
"""


class ContainerError(ValueError):
    """Base class for every failure raised while decoding a binary container."""


class MalformedContainer(ContainerError):
    """Bad magic, bad version, missing/duplicate section or bad section shape."""


class WitnessShapeMismatch(MalformedContainer):
    """Witness does not fit the circuit it is bound to."""


class UnsupportedField(ContainerError):
    """Field size other than 32 bytes, or a non-canonical field element."""


class TruncatedSection(ContainerError):
    """Declared section length disagrees with the bytes actually available."""


class WireMapInvariantViolation(ContainerError):
    """Wire 0 (the constant-one wire) is not mapped to label 0."""


class ExternalProcessFailure(RuntimeError):
    """The witness generator failed to run or produced no output."""


class FoldStepFailure(RuntimeError):
    """The folding backend rejected a step.

    Attributes:
        step: Index of the failing step within the driven run
    """

    def __init__(self, step: int, message: str) -> None:
        super().__init__(f"Step {step}: {message}")
        self.step = step
