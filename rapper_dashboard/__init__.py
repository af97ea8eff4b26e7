"""Rapper Dashboard API: music store PWA backend."""
