"""
Configuration management for pltxt2htm.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils
from lib.pltext import BackendText, PlTextParserConfig
from lib.pltext.parser import DEFAULT_MAX_NESTING_DEPTH, MAX_NESTING_DEPTH
from lib.pltext.renderer import DEFAULT_HOST

logger = logging.getLogger(__name__)


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace an environment variable placeholder with its value.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ``${VAR_NAME}`` placeholders in configuration values.

    Strings, dictionaries and lists are processed; other values are returned unchanged.
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading and validation for pltxt2htm.

    Configuration is optional: without a config file the library defaults are
    used. Sections:

        [parser]
        max-nesting-depth = 100
        ndebug = false

        [render]
        host = "physics-lab.example"
        backend = "advanced"   # or "basic"

        [logging]
        level = "INFO"
    """

    def __init__(
        self,
        configPath: Optional[str] = None,
        configDirs: Optional[List[str]] = None,
        dotEnvFile: str = ".env",
    ):
        """Initialize ConfigManager with an optional config file path and config directories."""
        self.config_path = configPath
        self.config_dirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())
        self._validateConfig()

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory."""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping")
            return tomlFiles

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, values of ``newConfig`` win."""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load the main TOML file and merge every .toml found in the config directories.

        Raises:
            SystemExit: If an explicitly given config file is missing and no config
                        directories are provided, or if the main file cannot be parsed
        """
        config: Dict[str, Any] = {}

        if self.config_path is not None:
            configFile = Path(self.config_path)
            if configFile.exists():
                try:
                    with open(configFile, "rb") as f:
                        config = tomli.load(f)
                except (OSError, tomli.TOMLDecodeError) as e:
                    logger.error(f"Failed to load configuration from {self.config_path}: {e}")
                    sys.exit(1)
                logger.info(f"Loaded main config from {self.config_path}")
            elif not self.config_dirs:
                logger.error(f"Configuration file {self.config_path} not found!")
                sys.exit(1)

        if self.config_dirs:
            logger.info(f"Scanning {len(self.config_dirs)} config directories for .toml files")

            for configDir in self.config_dirs:
                tomlFiles = self._findTomlFilesRecursive(configDir)
                logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

                for tomlFile in tomlFiles:
                    try:
                        with open(tomlFile, "rb") as f:
                            dirConfig = tomli.load(f)
                    except (OSError, tomli.TOMLDecodeError) as e:
                        # Continue with other files instead of exiting
                        logger.error(f"Failed to load config file {tomlFile}: {e}")
                        continue

                    config = self._mergeConfigs(config, dirConfig)
                    logger.info(f"Merged config from {tomlFile}")

        return config

    def _validateConfig(self) -> None:
        """
        Validate the parser and render sections.

        Raises:
            SystemExit: On an unknown backend or a bad nesting depth
        """
        backend = self.getRenderConfig().get("backend", BackendText.ADVANCED.value)
        try:
            BackendText.fromValue(backend)
        except ValueError as e:
            logger.error(f"Invalid [render] configuration: {e}")
            sys.exit(1)

        maxDepth = self.getParserConfig().get("max-nesting-depth", DEFAULT_MAX_NESTING_DEPTH)
        if isinstance(maxDepth, bool) or not isinstance(maxDepth, int) or not 0 < maxDepth <= MAX_NESTING_DEPTH:
            logger.error(
                f"Invalid [parser] configuration: max-nesting-depth must be in 1..{MAX_NESTING_DEPTH}, got {maxDepth}"
            )
            sys.exit(1)

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getParserConfig(self) -> Dict[str, Any]:
        """Get parser-specific configuration."""
        return self.get("parser", {})

    def getRenderConfig(self) -> Dict[str, Any]:
        """Get renderer-specific configuration."""
        return self.get("render", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getPlTextOptions(self) -> PlTextParserConfig:
        """
        Build PlTextParser options from the [parser] and [render] sections.

        Returns:
            PlTextParserConfig with every key filled in, defaults where unset
        """
        parserConfig = self.getParserConfig()
        renderConfig = self.getRenderConfig()
        return {
            "maxNestingDepth": parserConfig.get("max-nesting-depth", DEFAULT_MAX_NESTING_DEPTH),
            "ndebug": bool(parserConfig.get("ndebug", False)),
            "host": str(renderConfig.get("host", DEFAULT_HOST)),
            "backend": BackendText.fromValue(renderConfig.get("backend", BackendText.ADVANCED.value)),
        }
