from librarydesk.core.config.manager import ConfigManager
from librarydesk.core.config.models import AppConfig, SecurityConfig, SessionConfig, WebConfig
from librarydesk.core.config.paths import ConfigFsPaths

__all__ = ["AppConfig", "ConfigFsPaths", "ConfigManager", "SecurityConfig", "SessionConfig", "WebConfig"]
