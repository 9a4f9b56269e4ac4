"""
The Supervisor package.
Launches arpwatch as a managed child and keeps the container alive while it runs.

This package contains the ArpwatchSupervisor state machine and its helper
modules for process creation/monitoring, startup checks and shutdown.
"""
from .supervisor import ArpwatchSupervisor, SupervisorState

__all__ = ['ArpwatchSupervisor', 'SupervisorState']
