"""Servicios: cliente REST, recursos, analytics y alertas."""
