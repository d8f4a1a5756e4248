"""FinFlux Console - Backend del dashboard de estación de combustible."""
