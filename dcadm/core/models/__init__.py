"""
Domain models — Pydantic types for the engine.

All models are re-exported here for convenient access:

    from dcadm.core.models import ChangeDescriptor, HistoryRecord, Image, StepResult
"""

from dcadm.core.models.change import ChangeDescriptor
from dcadm.core.models.config import EngineConfig
from dcadm.core.models.history import HistoryRecord
from dcadm.core.models.resources import (
    AgentService,
    Image,
    ImageFile,
    Reachability,
    ServiceSpec,
)
from dcadm.core.models.step import StepResult

__all__ = [
    # resources.py
    "AgentService",
    # change.py
    "ChangeDescriptor",
    # config.py
    "EngineConfig",
    # history.py
    "HistoryRecord",
    "Image",
    "ImageFile",
    "Reachability",
    "ServiceSpec",
    # step.py
    "StepResult",
]
