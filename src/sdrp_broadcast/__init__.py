"""
SD-RP broadcast backend.

Aggregates Twitch stream data and FiveM server status for the dashboard
and relays death and player telemetry from the game servers.
"""

__version__ = "1.0.0"
__app_name__ = "SD-RP Broadcast"
