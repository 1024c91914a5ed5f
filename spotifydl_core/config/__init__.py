"""
Configuration package

settings.py holds the YAML/environment backed Settings; auth.py manages the
Spotify access token. auth is not re-exported here because it depends on the
logging utilities, which themselves read settings.
"""

from .settings import Settings, get_settings, reload_settings

__all__ = ['Settings', 'get_settings', 'reload_settings']
