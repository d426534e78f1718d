"""Core type definitions."""

from typing import NewType

# URL path as received from the client (e.g., "/", "/guide.html")
# Distinct from filesystem Path to catch type mismatches
URLPath = NewType("URLPath", str)
