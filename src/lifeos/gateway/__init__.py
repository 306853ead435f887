"""
LifeOS API gateway: prefix routing and reverse proxy.
"""
