"""Tendermint-style BFT consensus state machine for a single height."""

__version__ = "0.1.0"
__all__ = ["machine", "model", "progress", "state"]