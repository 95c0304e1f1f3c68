from .bus import BusClient, BusMessage, ConnectionState, LastWill, PahoBusClient, Reconnector

__all__ = [
    "BusClient",
    "BusMessage",
    "ConnectionState",
    "LastWill",
    "PahoBusClient",
    "Reconnector",
]
