"""Stream reconciliation module."""

from .reconciler import StreamReconciler

__all__ = ["StreamReconciler"]
