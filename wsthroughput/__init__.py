"""WebSocket throughput benchmark: an aiohttp server, concurrent clients and unit formatters."""

__version__ = "0.1.0"
__all__ = ["__version__"]