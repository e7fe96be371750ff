"""
twinsim: digital-twin failure simulation for service architectures.
"""

__version__ = "0.1.0"
