"""
Domain models — Pydantic types for provisioning.

    from ampp_setup.core.models import Action, Receipt, Step, Profile
"""

from ampp_setup.core.models.action import Action, Receipt
from ampp_setup.core.models.profile import FileOperation, PatchSpec, Profile
from ampp_setup.core.models.step import RunReport, Step, StepOutcome

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # profile.py
    "FileOperation",
    "PatchSpec",
    "Profile",
    # step.py
    "RunReport",
    "Step",
    "StepOutcome",
]
