"""
SCR Agro Farms Admin Analytics
Configuration Module
"""
from .settings import Settings, ReportingSettings, get_settings

__all__ = ["Settings", "ReportingSettings", "get_settings"]
