"""
pokeproxy: a resilient proxy in front of PokeAPI.

Adds retry with exponential backoff, input normalization and a
type-effectiveness based comparison of two pokemon.
"""

__version__ = "0.1.0"
