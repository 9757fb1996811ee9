"""
Marketplace API.

REST backend for the NFT marketplace demo with a Supabase-backed data layer
that falls back to in-memory storage when the remote database is unavailable.
"""

__version__ = "1.0.0"
