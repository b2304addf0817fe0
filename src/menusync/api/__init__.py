"""HTTP surface for triggering passes and user actions."""
