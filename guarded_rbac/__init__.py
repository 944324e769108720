"""
Role-based access control for Django models, scoped by authentication guard.
"""

__version__ = "0.1.0"
