"""Protocol interfaces for the scanner's chain collaborators."""

from burnscan.interfaces.resolver import AddressResolver
from burnscan.interfaces.paginator import HistoryPaginator
from burnscan.interfaces.fetcher import TransactionFetcher
from burnscan.interfaces.mint import MintInfoReader

__all__ = [
    "AddressResolver",
    "HistoryPaginator",
    "TransactionFetcher",
    "MintInfoReader",
]
