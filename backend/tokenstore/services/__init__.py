"""Service layer.

Import concrete services from their subpackages, e.g.
``from tokenstore.services.tokens.service import TokenService``. This module
stays import-free because models depend on the token value objects defined
under :mod:`tokenstore.services.tokens.dto`.
"""
