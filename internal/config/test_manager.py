"""
Tests for the Configuration Manager.

Covers loading, merging of config directories, environment substitution,
validation of the [parser] and [render] sections and conversion into
PlTextParser options.
"""

import tempfile
from pathlib import Path

import pytest

from internal.config.manager import ConfigManager, substituteEnvVars
from lib.pltext import BackendText
from lib.pltext.parser import DEFAULT_MAX_NESTING_DEPTH
from lib.pltext.renderer import DEFAULT_HOST

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def tempDir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dotEnvPath(tempDir):
    """Path of a (not yet existing) .env file inside the temp directory."""
    return str(tempDir / ".env")


@pytest.fixture
def sampleConfigToml():
    """Provide sample valid TOML configuration."""
    return """
[parser]
max-nesting-depth = 32
ndebug = true

[render]
host = "physics-lab.example"
backend = "basic"

[logging]
level = "INFO"
"""


@pytest.fixture
def defaultsToml():
    """Provide default configuration TOML."""
    return """
[parser]
max-nesting-depth = 64

[render]
host = "defaults.example"
backend = "advanced"
"""


@pytest.fixture
def invalidSyntaxToml():
    """Provide invalid TOML syntax."""
    return """
[render
host = "missing_bracket"
"""


# ============================================================================
# Helper Functions
# ============================================================================


def createConfigFile(directory: Path, filename: str, content: str) -> Path:
    """Create a TOML config file in the specified directory."""
    filePath = directory / filename
    filePath.write_text(content)
    return filePath


def createConfigDir(baseDir: Path, dirName: str, files: dict) -> Path:
    """Create a config directory with multiple TOML files."""
    configDir = baseDir / dirName
    configDir.mkdir(parents=True, exist_ok=True)

    for filename, content in files.items():
        createConfigFile(configDir, filename, content)

    return configDir


# ============================================================================
# Initialization Tests
# ============================================================================


class TestConfigManagerInitialization:
    """Test ConfigManager initialization."""

    def testInitWithoutConfig(self, dotEnvPath):
        """Without any config file the library defaults are used."""
        manager = ConfigManager(dotEnvFile=dotEnvPath)

        assert manager.config == {}
        assert manager.config_path is None
        assert manager.config_dirs == []

    def testInitWithValidConfig(self, tempDir, dotEnvPath, sampleConfigToml):
        """Test initialization with valid configuration file."""
        configPath = createConfigFile(tempDir, "config.toml", sampleConfigToml)

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.config_path == str(configPath)
        assert manager.config["render"]["host"] == "physics-lab.example"

    def testInitWithoutConfigFile(self, tempDir, dotEnvPath, defaultsToml):
        """A missing main file is fine when config directories are given."""
        configDir = createConfigDir(tempDir, "defaults", {"defaults.toml": defaultsToml})
        nonExistentPath = str(tempDir / "nonexistent.toml")

        manager = ConfigManager(nonExistentPath, configDirs=[str(configDir)], dotEnvFile=dotEnvPath)

        assert manager.config["render"]["host"] == "defaults.example"

    def testInitWithNonExistentConfigAndNoDirs(self, tempDir, dotEnvPath):
        """Test initialization fails when config file doesn't exist and no dirs provided."""
        nonExistentPath = str(tempDir / "nonexistent.toml")

        with pytest.raises(SystemExit):
            ConfigManager(nonExistentPath, dotEnvFile=dotEnvPath)

    def testInitWithInvalidSyntax(self, tempDir, dotEnvPath, invalidSyntaxToml):
        """A main file that is not valid TOML is fatal."""
        configPath = createConfigFile(tempDir, "config.toml", invalidSyntaxToml)

        with pytest.raises(SystemExit):
            ConfigManager(str(configPath), dotEnvFile=dotEnvPath)


# ============================================================================
# Configuration Merging Tests
# ============================================================================


class TestConfigurationMerging:
    """Test configuration merging logic."""

    def testConfigDirsOverrideMainFile(self, tempDir, dotEnvPath, sampleConfigToml, defaultsToml):
        """Config directories are merged on top of the main file, table by table."""
        configPath = createConfigFile(tempDir, "config.toml", sampleConfigToml)
        configDir = createConfigDir(tempDir, "defaults", {"defaults.toml": defaultsToml})

        manager = ConfigManager(str(configPath), configDirs=[str(configDir)], dotEnvFile=dotEnvPath)

        assert manager.config["parser"]["max-nesting-depth"] == 64
        # Keys missing from the override survive
        assert manager.config["parser"]["ndebug"] is True
        assert manager.config["render"]["backend"] == "advanced"
        assert manager.config["logging"]["level"] == "INFO"

    def testMergePriority(self, tempDir, dotEnvPath):
        """Files are merged in sorted order, later files win."""
        configDir = createConfigDir(
            tempDir,
            "configs",
            {
                "01-first.toml": '[render]\nhost = "first"\nbackend = "basic"',
                "02-second.toml": '[render]\nhost = "second"',
            },
        )

        manager = ConfigManager(configDirs=[str(configDir)], dotEnvFile=dotEnvPath)

        assert manager.config["render"]["host"] == "second"
        assert manager.config["render"]["backend"] == "basic"

    def testRecursiveDirectoryScan(self, tempDir, dotEnvPath):
        """Nested directories are searched for .toml files."""
        configDir = createConfigDir(tempDir, "configs", {})
        createConfigDir(configDir, "nested/deeper", {"render.toml": '[render]\nhost = "nested"'})
        createConfigFile(configDir, "notes.txt", "not a config")

        manager = ConfigManager(configDirs=[str(configDir)], dotEnvFile=dotEnvPath)

        assert manager.config["render"]["host"] == "nested"

    def testInvalidFileInDirIsSkipped(self, tempDir, dotEnvPath, invalidSyntaxToml, defaultsToml):
        """A broken file inside a config directory is logged and skipped."""
        configDir = createConfigDir(
            tempDir,
            "configs",
            {"00-broken.toml": invalidSyntaxToml, "01-defaults.toml": defaultsToml},
        )

        manager = ConfigManager(configDirs=[str(configDir)], dotEnvFile=dotEnvPath)

        assert manager.config["render"]["host"] == "defaults.example"

    def testMissingConfigDirIsSkipped(self, tempDir, dotEnvPath):
        manager = ConfigManager(configDirs=[str(tempDir / "missing")], dotEnvFile=dotEnvPath)

        assert manager.config == {}


# ============================================================================
# Environment Substitution Tests
# ============================================================================


class TestEnvironmentSubstitution:
    """Test ${VAR} placeholders and .env loading."""

    def testSubstituteFromEnvironment(self, tempDir, dotEnvPath, monkeypatch):
        monkeypatch.setenv("PLTEXT_TEST_HOST", "env.example")
        configPath = createConfigFile(tempDir, "config.toml", '[render]\nhost = "https://${PLTEXT_TEST_HOST}"')

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.getRenderConfig()["host"] == "https://env.example"

    def testUnknownVariableIsKept(self, tempDir, dotEnvPath, monkeypatch):
        monkeypatch.delenv("PLTEXT_TEST_UNSET", raising=False)
        configPath = createConfigFile(tempDir, "config.toml", '[render]\nhost = "${PLTEXT_TEST_UNSET}"')

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.getRenderConfig()["host"] == "${PLTEXT_TEST_UNSET}"

    def testDotEnvFileIsLoaded(self, tempDir, dotEnvPath, monkeypatch):
        # setenv first so monkeypatch restores the variable after the test
        monkeypatch.setenv("PLTEXT_TEST_DOTENV_HOST", "placeholder")
        Path(dotEnvPath).write_text('# comment\nPLTEXT_TEST_DOTENV_HOST="dotenv.example"\n')
        configPath = createConfigFile(tempDir, "config.toml", '[render]\nhost = "${PLTEXT_TEST_DOTENV_HOST}"')

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.getRenderConfig()["host"] == "dotenv.example"

    def testSubstituteNestedValues(self, monkeypatch):
        monkeypatch.setenv("PLTEXT_TEST_VALUE", "x")

        assert substituteEnvVars({"a": ["${PLTEXT_TEST_VALUE}", 1], "b": {"c": "${PLTEXT_TEST_VALUE}"}}) == {
            "a": ["x", 1],
            "b": {"c": "x"},
        }


# ============================================================================
# Validation Tests
# ============================================================================


class TestValidation:
    """Test validation of parser and render sections."""

    def testUnknownBackend(self, tempDir, dotEnvPath):
        configPath = createConfigFile(tempDir, "config.toml", '[render]\nbackend = "markdown"')

        with pytest.raises(SystemExit):
            ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

    @pytest.mark.parametrize("depth", ["0", "-5", "129", '"deep"', "true", "1.5"])
    def testInvalidNestingDepth(self, tempDir, dotEnvPath, depth):
        configPath = createConfigFile(tempDir, "config.toml", f"[parser]\nmax-nesting-depth = {depth}")

        with pytest.raises(SystemExit):
            ConfigManager(str(configPath), dotEnvFile=dotEnvPath)


# ============================================================================
# Getter Tests
# ============================================================================


class TestGetters:
    """Test section getters and parser options."""

    def testSectionGetters(self, tempDir, dotEnvPath, sampleConfigToml):
        configPath = createConfigFile(tempDir, "config.toml", sampleConfigToml)

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.getParserConfig() == {"max-nesting-depth": 32, "ndebug": True}
        assert manager.getRenderConfig()["backend"] == "basic"
        assert manager.getLoggingConfig() == {"level": "INFO"}
        assert manager.get("missing", "default") == "default"

    def testPlTextOptions(self, tempDir, dotEnvPath, sampleConfigToml):
        configPath = createConfigFile(tempDir, "config.toml", sampleConfigToml)

        manager = ConfigManager(str(configPath), dotEnvFile=dotEnvPath)

        assert manager.getPlTextOptions() == {
            "maxNestingDepth": 32,
            "ndebug": True,
            "host": "physics-lab.example",
            "backend": BackendText.BASIC,
        }

    def testPlTextOptionsDefaults(self, dotEnvPath):
        manager = ConfigManager(dotEnvFile=dotEnvPath)

        assert manager.getPlTextOptions() == {
            "maxNestingDepth": DEFAULT_MAX_NESTING_DEPTH,
            "ndebug": False,
            "host": DEFAULT_HOST,
            "backend": BackendText.ADVANCED,
        }
