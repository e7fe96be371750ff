from . import health, simulation

__all__ = ["health", "simulation"]
