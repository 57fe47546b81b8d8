"""
Per-city COVID-19 case series for the Netherlands, reshaped for line charts.
"""

import importlib.metadata

__version__ = importlib.metadata.version("citycases")
