"""Adapters exposing third-party validation libraries through the schema contract.

Each adapter lives in its own module and imports its library lazily, so
``import wren`` never requires an optional dependency.
"""
