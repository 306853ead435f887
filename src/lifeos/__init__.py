"""
LifeOS realtime edge: API gateway and notification fan-out service.
"""

__version__ = "1.0.0"
