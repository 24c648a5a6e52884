"""Telemetry scaffolds for shipping diagnostics.

This package emits deterministic request events without secret material.
"""

from .logger import ShipLogger

__all__ = ["ShipLogger"]
