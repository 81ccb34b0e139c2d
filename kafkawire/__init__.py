"""Wire codecs, cluster metadata state, connection pooling and request framing for Kafka clients."""

__version__ = "0.1.0"

__all__ = [
    "codecs",
    "metadata",
    "network",
    "state",
    "transport",
]