"""REST API for the rental booking core."""
