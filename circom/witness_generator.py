"""Witness generation through the Circom-compiled witness executable.

The step driver only needs a callable from an input document to witness
bytes (WitnessGenerator). CircomWitnessGenerator provides that callable on top
of the native executable Circom emits (``<circuit>_cpp/<circuit>``), which is
invoked as

    <executable> <input.json> <output.wtns>

Both files live in a fresh temporary directory per call, so concurrent runs
never collide and nothing is left behind on any exit path.
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from primitives.errors import ExternalProcessFailure

if TYPE_CHECKING:
    from folding.config import DriverConfig

LOGGER = logging.getLogger(__name__)

WitnessGenerator = Callable[[Dict[str, Any]], bytes]
"""Maps an input document ({"step_in": [...], **private}) to wtns bytes."""

INPUT_FILE_NAME = "input.json"
OUTPUT_FILE_NAME = "witness.wtns"


class CircomWitnessGenerator:
    """Runs a Circom witness executable as a subprocess.

    Attributes:
        executable: Path to the witness generator binary
        work_dir: Parent directory for per-call scratch directories
            (system temp dir when None)
        timeout: Seconds to wait for the process, or None to wait forever
        check_exit_status: Treat a non-zero exit status as a failure. Off by
            default: the generator's exit status is only logged and a
            missing or unparseable witness is what fails the step.
    """

    def __init__(
        self,
        executable: Union[str, Path],
        work_dir: Optional[Union[str, Path]] = None,
        timeout: Optional[float] = None,
        check_exit_status: bool = False,
    ) -> None:
        self.executable = Path(executable)
        self.work_dir = Path(work_dir) if work_dir is not None else None
        self.timeout = timeout
        self.check_exit_status = check_exit_status

    @classmethod
    def from_config(cls, config: 'DriverConfig') -> 'CircomWitnessGenerator':
        if config.witness_generator is None:
            raise ValueError("DriverConfig has no witness_generator path")
        return cls(
            config.witness_generator,
            work_dir=config.work_dir,
            timeout=config.timeout,
            check_exit_status=config.check_exit_status,
        )

    def __call__(self, document: Dict[str, Any]) -> bytes:
        with tempfile.TemporaryDirectory(prefix="witness-", dir=self.work_dir) as scratch:
            input_path = Path(scratch) / INPUT_FILE_NAME
            output_path = Path(scratch) / OUTPUT_FILE_NAME
            input_path.write_text(json.dumps(document))
            self._run(input_path, output_path)

            if not output_path.exists():
                raise ExternalProcessFailure(
                    f"Witness generator {self.executable} produced no output file"
                )
            data = output_path.read_bytes()
            if not data:
                raise ExternalProcessFailure(
                    f"Witness generator {self.executable} produced an empty witness"
                )
            return data

    def _run(self, input_path: Path, output_path: Path) -> None:
        cmd = [str(self.executable), str(input_path), str(output_path)]
        LOGGER.debug("Running witness generator: %s", " ".join(cmd))
        try:
            cp = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalProcessFailure(
                f"Witness generator timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise ExternalProcessFailure(
                f"Failed to execute witness generator {self.executable}: {e}"
            ) from e

        # Output is only shown to the operator; any byte sequence is accepted.
        if cp.stdout:
            LOGGER.info("witness generator stdout: %s", cp.stdout.decode(errors="replace").rstrip())
        if cp.stderr:
            LOGGER.info("witness generator stderr: %s", cp.stderr.decode(errors="replace").rstrip())

        if cp.returncode != 0:
            if self.check_exit_status:
                raise ExternalProcessFailure(
                    f"Witness generator exited with status {cp.returncode}"
                )
            LOGGER.warning("Witness generator exited with status %d", cp.returncode)
