"""Configuration module for the Graph Directory Console application."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
