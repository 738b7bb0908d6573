"""
lastkey - Release Orchestration Engine

A dead-man's-switch workflow for digital vaults: prolonged owner inactivity
starts a multi-phase release that passes through a grace period, a witness
quorum and a time-lock before beneficiaries gain access.

Phases:
- pending: grace period running, owner still has notice
- in_progress: witnesses approve or veto
- approved: quorum reached, time-lock counting down
- released / rejected: terminal
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
