"""Exceptions raised by the RPC layer and the scanner."""

from __future__ import annotations


class BurnScanError(Exception):
    """Base class for burnscan errors."""


class TransientFetchError(BurnScanError):
    """Network, rate-limit, timeout or RPC error while talking to the node.

    The scanner never retries on its own; a scan that hits one of these
    ends as ``failed`` and the caller decides whether to rescan.
    """

    def __init__(self, message: str, method: str | None = None) -> None:
        self.method = method
        super().__init__(message)


class MalformedTransaction(BurnScanError):
    """A single transaction body is missing fields or has the wrong shape."""

    def __init__(self, message: str, signature: str | None = None) -> None:
        self.signature = signature
        super().__init__(message)
