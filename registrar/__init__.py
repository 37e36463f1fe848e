"""Repository Registrar — register third-party pacman repositories."""

__version__ = "0.1.0"
