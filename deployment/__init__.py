"""
PipesHub cloud deployment toolkit.

Models the deployment topology and environment contract of the PipesHub AI
stack, renders configuration artifacts, and runs deployment-acceptance checks.
"""

__version__ = "0.1.0"
