"""Composition layer: settings, the public updater facade, and the CLI."""
