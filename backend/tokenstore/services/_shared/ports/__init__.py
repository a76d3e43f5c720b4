"""
tokenstore.services._shared.ports
=================================

*Ports* (hexagonal interfaces) that decouple the service layer from the
platform facilities it depends on.

Modules
-------
- :mod:`token_id_generator`:
    Defines :class:`~.TokenIdGenerator` and :class:`~.EntropySource`.
    Concrete adapters live under ``tokenstore.infra.entropy``.
"""

from __future__ import annotations

from .token_id_generator import EntropySource, TokenIdGenerator

__all__ = [
    "EntropySource",
    "TokenIdGenerator",
]
