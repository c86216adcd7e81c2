"""
Option Greek Surface Viewer
Interactive 3D surfaces of option prices and Greeks over a strike x volatility grid.
"""
__version__ = "0.1.0"
