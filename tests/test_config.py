import os

import pytest

from curriculum.config import load_config
from curriculum.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory with no CURRICULUM_* variables set."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("CURRICULUM_"):
            monkeypatch.delenv(key)


def test_defaults():
    config = load_config()
    assert config.api.base_url == "http://localhost:8080/api"
    assert config.provisioning.settle_delay_seconds == 1.0
    assert config.provisioning.max_file_size_bytes == 5 * 1024 * 1024
    assert config.provisioning.allowed_extensions == [".pdf", ".mp3"]
    assert config.provisioning.require_material is True


def test_yaml_file_overrides_defaults(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "api:\n"
        "  base_url: https://lms.example.com/api\n"
        "provisioning:\n"
        "  settle_delay_seconds: 2.5\n"
        "  unknown_key: ignored\n"
    )
    config = load_config(str(path))
    assert config.api.base_url == "https://lms.example.com/api"
    assert config.provisioning.settle_delay_seconds == 2.5
    assert config.api.timeout_seconds == 30.0


def test_config_yaml_in_working_directory_is_found(tmp_path):
    (tmp_path / "config.yaml").write_text("logging:\n  level: DEBUG\n")
    assert load_config().logging.level == "DEBUG"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("api:\n  timeout_seconds: 10\n")
    monkeypatch.setenv("CURRICULUM_API__TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("CURRICULUM_API__ACCESS_TOKEN", "tok")
    monkeypatch.setenv("CURRICULUM_PROVISIONING__REQUIRE_MATERIAL", "false")
    monkeypatch.setenv("CURRICULUM_PROVISIONING__ALLOWED_EXTENSIONS", ".pdf, .mp3, .m4a")

    config = load_config(str(path))
    assert config.api.timeout_seconds == 12.5
    assert config.api.access_token == "tok"
    assert config.provisioning.require_material is False
    assert config.provisioning.allowed_extensions == [".pdf", ".mp3", ".m4a"]


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("CURRICULUM_PROVISIONING__MAX_FILE_SIZE_BYTES", "lots")
    with pytest.raises(ConfigurationError):
        load_config()


def test_missing_explicit_file():
    with pytest.raises(ConfigurationError):
        load_config("nope.yaml")


def test_negative_settle_delay(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("provisioning:\n  settle_delay_seconds: -1\n")
    with pytest.raises(ConfigurationError):
        load_config(str(path))
