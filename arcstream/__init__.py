"""Message sequencing, in-process streaming, payload framing and structured event logging."""

__version__ = "0.1.0"