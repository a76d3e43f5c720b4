from tokenstore.models.token import TokenRecord

__all__ = [
    "TokenRecord",
]
