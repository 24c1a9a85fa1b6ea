"""Distant-supervision relation-extraction corpus pipeline."""

__all__ = [
    "PipelineConfig",
    "DistantSupervisionPipeline",
    "PipelineSetupError",
    "Stage",
]

__version__ = "0.1.0"

from .config import PipelineConfig  # noqa: E402
from .pipeline import DistantSupervisionPipeline, PipelineSetupError  # noqa: E402
from .types import Stage  # noqa: E402
