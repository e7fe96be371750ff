"""
Digital-Twin Simulation API
"""
