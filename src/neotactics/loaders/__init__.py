"""YAML configuration loaders."""
