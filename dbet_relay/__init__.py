"""
dBet resolution relay: stores off-chain market resolutions for the oracle
callback and renders dynamic metadata for position NFTs.
"""

__version__ = "1.0.0"
