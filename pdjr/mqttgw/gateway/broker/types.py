# broker/types.py

from enum import Enum

class SessionState(Enum):
    # Session created but connect() not called yet
    INITIALIZING = "initializing"

    # connect() called, waiting for the first CONNACK (paho retries in background)
    CONNECTING = "connecting"

    # Broker accepted the connection, subscriptions sent
    CONNECTED = "connected"

    # Connection lost or refused, paho reconnects at a fixed period
    DISCONNECTED = "disconnected"

    # Explicitly closed via close()
    CLOSED = "closed"
