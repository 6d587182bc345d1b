"""burnscan - burn history scanner for SPL tokens on Solana-compatible chains."""

__version__ = "0.1.0"
