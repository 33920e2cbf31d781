"""CSV adapters that turn the upstream exports into event-store inputs."""

from .tables import (
    load_store,
    read_meetings,
    read_nato_roster,
    read_port_visits,
    read_vessel_status,
)

__all__ = [
    "load_store",
    "read_meetings",
    "read_nato_roster",
    "read_port_visits",
    "read_vessel_status",
]
