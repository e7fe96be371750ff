"""
Core graph input models
"""
from .models import GraphData, ComponentData, EdgeData

__all__ = ["GraphData", "ComponentData", "EdgeData"]
