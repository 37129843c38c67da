"""
Data models for OpenVPN IP Updater.

This module defines the result types reported by the updater.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class UpdateOutcome(StrEnum):
    """
    What a single updater run did.

    Attributes
    ----------
    RUNNING : str
        The tunnel is up; nothing was checked or changed.
    UNCHANGED : str
        The tunnel is down but the configured endpoint already matches
        the resolved address, so an update cannot fix it.
    UPDATED : str
        The endpoint was replaced with the resolved address.
    """

    RUNNING = "running"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


class UpdateResult(BaseModel):
    """
    Result of an updater run.

    Attributes
    ----------
    outcome : UpdateOutcome
        What the run did.
    interface_id : str | None
        RouterOS item id of the OpenVPN client interface (``*1``).
    previous_endpoint : str | None
        The ``connect-to`` value found on the router.
    resolved_address : str | None
        The address the VPN host resolved to (None when not resolved).
    """

    outcome: UpdateOutcome
    interface_id: str | None = None
    previous_endpoint: str | None = None
    resolved_address: str | None = None
