"""Diag capture and framing, GSMTAP and pcapng conversion, and an analyzer interface."""

__version__ = "0.1.0"