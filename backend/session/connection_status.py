"""
Connection status of the underlying live voice session.

Tracked by the lifecycle adapter, separately from VoiceStatus:
- ConnectionStatus answers "is the transport up?"
- VoiceStatus answers "what does the student see?"

Only CONNECTED maps to SignalTuple.connected=True.
"""
from enum import Enum


class ConnectionStatus(str, Enum):
    """Connection lifecycle of one live session."""
    DISCONNECTED = "disconnected"  # Closed, or never opened
    CONNECTING = "connecting"      # start() in progress
    CONNECTED = "connected"        # Transport reported on_connect
