"""Building blocks shared by application services."""
