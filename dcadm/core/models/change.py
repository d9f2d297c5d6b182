"""
ChangeDescriptor — one intended mutation, recorded in history.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ChangeDescriptor(BaseModel):
    """Names a single change a procedure intends to make.

    Immutable once created: the history record's change list is fixed
    before any work starts.
    """

    model_config = ConfigDict(frozen=True)

    subject_type: str    # service, image
    subject_name: str
    action: str          # create, import

    @property
    def type(self) -> str:
        """History label, e.g. ``create-service``."""
        return f"{self.action}-{self.subject_type}"

    def __str__(self) -> str:
        return f"{self.action} {self.subject_type} {self.subject_name}"
