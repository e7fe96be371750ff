from .settings import Settings, SimulationConfig, SLATargets, load_config

__all__ = ["Settings", "SimulationConfig", "SLATargets", "load_config"]
