"""Concrete adapters for the ports declared in ``tokenstore.services._shared.ports``."""
