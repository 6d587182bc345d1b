"""Solana JSON-RPC integration components."""

from burnscan.chain.rpc import SolanaRPC
from burnscan.chain.resolver import AssociatedAccountResolver, derive_associated_account
from burnscan.chain.paginator import SignaturePaginator
from burnscan.chain.fetcher import ParsedTransactionFetcher
from burnscan.chain.mint import MintReader

__all__ = [
    "SolanaRPC",
    "AssociatedAccountResolver",
    "derive_associated_account",
    "SignaturePaginator",
    "ParsedTransactionFetcher",
    "MintReader",
]
