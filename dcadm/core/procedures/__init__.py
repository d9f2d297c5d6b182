"""
Procedures — the closed set of changes the engine can apply.

    from dcadm.core.procedures import AddAgentServices, DownloadImages, Procedure
"""

from typing import Union

from dcadm.core.procedures.agent_services import AddAgentServices
from dcadm.core.procedures.base import ProcedureLike
from dcadm.core.procedures.download_images import DownloadImages

Procedure = Union[DownloadImages, AddAgentServices]

__all__ = [
    "AddAgentServices",
    "DownloadImages",
    "Procedure",
    "ProcedureLike",
]
