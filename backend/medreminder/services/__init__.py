"""Services Layer — imperative shell orchestrating IO around the pure core."""
