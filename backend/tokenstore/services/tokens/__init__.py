"""Token issuing and lookup service with its DTOs and translator."""
