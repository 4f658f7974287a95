"""Monthly rental booking core: models, services and settings."""
