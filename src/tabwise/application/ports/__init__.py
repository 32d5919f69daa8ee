"""Application ports (interfaces) used by the application layer."""

from .event_store_port import EventStorePort

__all__ = ["EventStorePort"]
