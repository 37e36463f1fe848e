"""Host tool adapters."""

from registrar.adapters.base import SystemTools
from registrar.adapters.mock import MockTools
from registrar.adapters.pacman import PacmanTools

__all__ = ["MockTools", "PacmanTools", "SystemTools"]
