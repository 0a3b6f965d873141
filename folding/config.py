"""Driver configuration."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import galois

from primitives.field import get_field


@dataclass
class DriverConfig:
    """Settings for a folding run.

    Fields:
        witness_generator: Path to the Circom witness executable
        field: Scalar field name ("pallas", "vesta", "bn254")
        work_dir: Parent directory for scratch files (system temp when None)
        timeout: Seconds allowed per witness-generator call (None: unlimited)
        check_exit_status: Fail on non-zero generator exit status
    """
    witness_generator: Optional[Path] = None
    field: str = "pallas"
    work_dir: Optional[Path] = None
    timeout: Optional[float] = None
    check_exit_status: bool = False

    @property
    def scalar_field(self) -> type[galois.FieldArray]:
        return get_field(self.field)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DriverConfig':
        """Build from a JSON-style dict.

        Example:
        {
          "witnessGenerator": "build/toy_cpp/toy",
          "field": "pallas",
          "workDir": "/tmp/fold",
          "timeout": 30,
          "checkExitStatus": false
        }
        """
        witness_generator = data.get('witnessGenerator')
        work_dir = data.get('workDir')
        timeout = data.get('timeout')
        config = cls(
            witness_generator=Path(witness_generator) if witness_generator else None,
            field=data.get('field', 'pallas'),
            work_dir=Path(work_dir) if work_dir else None,
            timeout=float(timeout) if timeout is not None else None,
            check_exit_status=bool(data.get('checkExitStatus', False)),
        )
        get_field(config.field)  # unknown names fail at load time
        return config

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'DriverConfig':
        """Load from a JSON file; relative paths resolve against its directory."""
        path = Path(path)
        with open(path, 'r') as f:
            config = cls.from_dict(json.load(f))
        if config.witness_generator is not None and not config.witness_generator.is_absolute():
            config.witness_generator = path.parent / config.witness_generator
        return config
