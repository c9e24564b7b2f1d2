"""
SCR Agro Farms Admin Analytics
"""

__version__ = "1.0.0"
