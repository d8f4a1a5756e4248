"""Core - Roles y sesiones."""
