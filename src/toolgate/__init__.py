"""
toolgate - Tool-calling gateway.

Exposes a registry of local and remote tools behind a single dispatch core.
"""

__version__ = "0.1.0"
