"""Credential selection and display helpers.

The core never reads credentials from the environment. A caller either
passes a key on each request or, in hosted environments, asks a
``CredentialSelector`` to have the user pick one.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from studioforge.core.studio.errors import CredentialError

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialSelector(Protocol):
    """Host-provided key picker."""

    async def has_selected_key(self) -> bool: ...

    async def open_select_key(self) -> bool:
        """Open the picker; True once the user confirmed a key."""
        ...


async def ensure_credential(selector: CredentialSelector | None) -> bool:
    """Make sure the host has a selected key, prompting if needed.

    Args:
        selector: Host key picker, or None when keys are entered manually

    Returns:
        True if a key is selected (False when no selector is available)

    Raises:
        CredentialError: The user dismissed the picker without confirming
    """
    if selector is None:
        return False
    if await selector.has_selected_key():
        return True

    logger.info("No API key selected; opening key picker")
    if not await selector.open_select_key():
        raise CredentialError("No API key was selected.")
    # Confirmation only counts once the host reports it
    if not await selector.has_selected_key():
        raise CredentialError("API key selection was not confirmed.")
    return True


def mask_credential(credential: str | None) -> str:
    """Display form of a key: first and last four characters only.

    Example:
        >>> mask_credential("AIzaSyA1234567890abcd")
        'AIza...abcd'
    """
    if not credential:
        return "(not set)"
    key = credential.strip()
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"
