"""Session module."""

from .controller import ISessionController, SessionController

__all__ = ["ISessionController", "SessionController"]
