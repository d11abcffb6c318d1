"""
Domain models — Pydantic types for the provisioner.

    from geonode_devenv.core.models import Action, Receipt, SetupSettings, SetupState
"""

from geonode_devenv.core.models.action import Action, Receipt
from geonode_devenv.core.models.settings import (
    ClientSettings,
    DockerSettings,
    EditorSettings,
    GeoNodeSettings,
    PollSettings,
    SetupSettings,
)
from geonode_devenv.core.models.state import RunRecord, SetupState, StepState

__all__ = [
    # action.py
    "Action",
    # settings.py
    "ClientSettings",
    "DockerSettings",
    "EditorSettings",
    "GeoNodeSettings",
    "PollSettings",
    "Receipt",
    # state.py
    "RunRecord",
    "SetupSettings",
    "SetupState",
    "StepState",
]
