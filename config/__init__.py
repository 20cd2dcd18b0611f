# Configuration module exports
from .app_config import AppConfig, get_config, set_config
from .profile_config import ProfileConfig, load_profiles, parse_profiles

__all__ = [
    'AppConfig',
    'get_config',
    'set_config',
    'ProfileConfig',
    'load_profiles',
    'parse_profiles'
]
