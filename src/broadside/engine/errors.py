"""Structural errors raised by the Broadside engine.

Capacity failures (overlaps, ships running off the edge) and repeat attacks
are ordinary outcomes and are returned, not raised.
"""

from __future__ import annotations


class BroadsideError(Exception):
    """Base class for all engine errors."""


class InvalidCoordinate(BroadsideError, ValueError):
    """Coordinate is not an integer pair inside the board."""


class InvalidShipType(BroadsideError, ValueError):
    """Ship name is not one of the five fleet types."""


class InvalidDirection(BroadsideError, ValueError):
    """Direction is neither horizontal nor vertical."""


class ShipAlreadyPlaced(BroadsideError, ValueError):
    """A ship of this type is already on the board."""


class MalformedShipPosition(BroadsideError, ValueError):
    """A setup record is missing fields or has the wrong shape."""


class InvalidPlacementMethod(BroadsideError, ValueError):
    """The opponent has no placement strategy with this name."""


class FleetPlacementFailed(BroadsideError, RuntimeError):
    """A full fleet could not be placed, so the match cannot start."""


class InputTimeout(BroadsideError, TimeoutError):
    """An external input did not arrive in time."""


class MatchCancelled(BroadsideError, RuntimeError):
    """A pending wait was interrupted because the match was stopped."""
