"""
Domain models — Pydantic types for fabctl.

    from fabctl.core.models import Action, Receipt, NetworkConfig
"""

from fabctl.core.models.action import Action, Receipt
from fabctl.core.models.network import SYSTEM_CHANNEL, ChaincodeInstance, NetworkConfig

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # network.py
    "ChaincodeInstance",
    "NetworkConfig",
    "SYSTEM_CHANNEL",
]
