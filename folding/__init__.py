"""Folding - Step driver and the folding backend contract."""

from folding.backend import FoldingBackend, create_public_params
from folding.config import DriverConfig
from folding.driver import FoldingRun, StepDriver
from folding.reference import ReferenceAccumulator, ReferenceFoldingBackend

__all__ = [
    "FoldingBackend",
    "create_public_params",
    "DriverConfig",
    "StepDriver",
    "FoldingRun",
    "ReferenceFoldingBackend",
    "ReferenceAccumulator",
]
