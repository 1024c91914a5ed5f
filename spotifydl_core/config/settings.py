"""
Configuration management for spotifydl-core

This module handles loading, validation, and management of library settings
from multiple sources including YAML files and environment variables. It provides
a centralized configuration system shared by the catalog client, the media
locator/fetcher pair and the tag writer.

The configuration is organized into logical sections using dataclasses:
- Spotify API settings (credentials, market)
- Download preferences (format, bitrate, temporary storage, batch concurrency)
- YouTube Music search options
- Metadata embedding options (album art, ID3 version)
- Network settings (timeouts, short-link domains)
- Logging output

All sensitive data (client secret, refresh token) can be loaded from environment
variables for security, while non-sensitive settings can be stored in YAML files.
"""

import os
import tempfile
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from ..core.exceptions import ConfigError

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class SpotifyConfig:
    """
    Spotify API credentials

    client_id and client_secret are required for every catalog lookup.
    When refresh_token is set, tokens are obtained through the refresh-token
    grant (user context) instead of the client-credentials grant.
    """
    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    market: str = ""


@dataclass
class DownloadConfig:
    """
    Download configuration settings

    max_concurrent_downloads bounds how many tracks of one album/playlist
    batch are in flight at once. None or 0 means no limit.
    """
    audio_format: str = "mp3"
    bitrate: int = 320
    temp_directory: str = ""
    max_concurrent_downloads: Optional[int] = None


@dataclass
class YTMusicConfig:
    """YouTube Music search settings"""
    max_results: int = 5
    fallback_to_videos: bool = True


@dataclass
class MetadataConfig:
    """
    Metadata embedding settings

    Controls which ID3 frames are written into downloaded files and which
    ID3 version is used when saving.
    """
    include_album_art: bool = True
    id3_version: str = "2.4"


@dataclass
class NetworkConfig:
    """
    Network and HTTP configuration settings

    request_timeout applies to every single HTTP request made by spotipy,
    aiohttp and requests. operation_timeout bounds a whole logical operation
    (one catalog lookup, one track download); None disables it.
    """
    user_agent: str = "spotifydl-core/1.0"
    request_timeout: int = 30
    operation_timeout: Optional[float] = None
    short_link_domains: List[str] = field(default_factory=lambda: ["spotify.link", "spoti.fi"])


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    The library never installs handlers on its own; these values are used by
    configure_from_settings() when the host application asks for it.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from YAML, overrides them with environment variables and
    offers a unified interface to the rest of the library.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".spotifydl-core"

        self.spotify = SpotifyConfig()
        self.download = DownloadConfig()
        self.ytmusic = YTMusicConfig()
        self.metadata = MetadataConfig()
        self.network = NetworkConfig()
        self.logging = LoggingConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                with open(path, 'r', encoding='utf-8') as f:
                    try:
                        config_data = yaml.safe_load(f) or {}
                    except yaml.YAMLError as e:
                        raise ConfigError(
                            f"Invalid YAML syntax in configuration file: {e}",
                            details={'file_path': str(path), 'original_error': str(e)}
                        ) from e

                if not isinstance(config_data, dict):
                    raise ConfigError(
                        "Configuration file must contain a YAML dictionary",
                        details={'file_path': str(path)}
                    )
                break

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on the target dataclass are updated;
        unknown sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = {
            'spotify': self.spotify,
            'download': self.download,
            'ytmusic': self.ytmusic,
            'metadata': self.metadata,
            'network': self.network,
            'logging': self.logging,
        }

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'SPOTIFY_CLIENT_ID': lambda v: setattr(self.spotify, 'client_id', v),
            'SPOTIFY_CLIENT_SECRET': lambda v: setattr(self.spotify, 'client_secret', v),
            'SPOTIFY_REFRESH_TOKEN': lambda v: setattr(self.spotify, 'refresh_token', v),
            'SPOTIFYDL_TEMP_DIR': lambda v: setattr(self.download, 'temp_directory', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_temp_directory(self) -> Path:
        """
        Get the directory used for in-flight downloads

        Falls back to a 'spotifydl-core' folder under the system temp dir.
        The directory is created on demand.

        Returns:
            Path object for the temporary download directory
        """
        if self.download.temp_directory:
            temp_dir = Path(self.download.temp_directory).expanduser()
        else:
            temp_dir = Path(tempfile.gettempdir()) / "spotifydl-core"
        temp_dir.mkdir(parents=True, exist_ok=True)
        return temp_dir

    def get_config_directory(self) -> Path:
        """Get the expanded config directory path"""
        return self.config_dir.expanduser()

    def get_validation_errors(self) -> List[str]:
        """
        Collect configuration problems

        Returns:
            List of human-readable error messages, empty when valid
        """
        errors = []

        if not self.spotify.client_id or not self.spotify.client_secret:
            errors.append("Spotify client_id and client_secret are required")

        if self.download.audio_format != 'mp3':
            errors.append(f"Invalid audio format: {self.download.audio_format} (only mp3 is tagged)")

        if self.download.bitrate not in (96, 128, 160, 192, 256, 320):
            errors.append(f"Invalid bitrate: {self.download.bitrate}")

        limit = self.download.max_concurrent_downloads
        if limit is not None and limit < 0:
            errors.append(f"max_concurrent_downloads cannot be negative: {limit}")

        if self.metadata.id3_version not in ('2.3', '2.4'):
            errors.append(f"Invalid ID3 version: {self.metadata.id3_version}")

        timeout = self.network.operation_timeout
        if timeout is not None and timeout <= 0:
            errors.append(f"operation_timeout must be positive: {timeout}")

        return errors

    def validate(self) -> bool:
        """
        Validate current configuration

        Returns:
            True if configuration is valid, False otherwise
        """
        return not self.get_validation_errors()

    def __str__(self) -> str:
        sections = [
            f"Download: {self.download.audio_format} @ {self.download.bitrate}k",
            f"Concurrency: {self.download.max_concurrent_downloads or 'unlimited'}",
            f"Album art: {'on' if self.metadata.include_album_art else 'off'}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance, created on first access
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
