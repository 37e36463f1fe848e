"""
Domain models — Pydantic types and the pacman.conf model.

All models are re-exported here for convenient access:

    from registrar.core.models import RepositoryDescriptor, PacmanConf, Receipt
"""

from registrar.core.models.action import Receipt
from registrar.core.models.pacman_conf import PacmanConf, Section
from registrar.core.models.repository import (
    RELAXED_SIG_LEVEL,
    RepositoryDescriptor,
    SigLevel,
    TrustKey,
    TrustOutcome,
    TrustState,
)
from registrar.core.models.settings import KeyFailurePolicy, Settings

__all__ = [
    "KeyFailurePolicy",
    "PacmanConf",
    "RELAXED_SIG_LEVEL",
    "Receipt",
    "RepositoryDescriptor",
    "Section",
    "Settings",
    "SigLevel",
    "TrustKey",
    "TrustOutcome",
    "TrustState",
]
