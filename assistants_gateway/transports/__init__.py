from assistants_gateway.transports.base import TransportAdapter

__all__ = ["TransportAdapter"]
