"""
Adapters: terminal output for the simulation CLI.
"""
