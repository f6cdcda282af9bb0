"""
                Menu & Order API

A small async backend exposing a menu catalog and an order-placement
API, with pluggable document store and identity verifier backends
(in-memory/mock for development, SQL/Firebase for production).

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
