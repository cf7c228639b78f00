"""
Bitfinex API library and command-line tool.
"""

from .exchange import BitfinexClient, BitfinexError

__version__ = "0.2.0"

__all__ = ["BitfinexClient", "BitfinexError", "__version__"]
