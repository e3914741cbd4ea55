"""Utility modules for Lyryc."""
