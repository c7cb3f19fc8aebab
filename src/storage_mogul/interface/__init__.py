"""Command-line interface and user configuration for Storage Mogul."""
