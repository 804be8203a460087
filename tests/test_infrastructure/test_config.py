"""Tests for configuration."""

from plugrun.infrastructure import config
from plugrun.infrastructure.config import read_env_file


class TestReadEnvFile:
    def test_reads_env_values(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DOCKER_HOST=tcp://10.0.0.5:2375\nDOCKER_API_VERSION=1.41\n")
        monkeypatch.chdir(tmp_path)

        result = read_env_file(["DOCKER_HOST", "DOCKER_API_VERSION"])
        assert result == {"DOCKER_HOST": "tcp://10.0.0.5:2375", "DOCKER_API_VERSION": "1.41"}

    def test_explicit_path(self, tmp_path):
        env_file = tmp_path / "plugrun.env"
        env_file.write_text("PLUGRUN_ENGINE_TIMEOUT=5\n")

        assert read_env_file(["PLUGRUN_ENGINE_TIMEOUT"], env_file) == {"PLUGRUN_ENGINE_TIMEOUT": "5"}

    def test_strips_quotes(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text('KEY1="quoted"\nKEY2=\'single\'\nKEY3="unbalanced\n')
        monkeypatch.chdir(tmp_path)

        result = read_env_file(["KEY1", "KEY2", "KEY3"])
        assert result["KEY1"] == "quoted"
        assert result["KEY2"] == "single"
        assert result["KEY3"] == '"unbalanced'

    def test_value_may_contain_equals(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DOCKER_HOST=unix:///run/user/1000/docker.sock?x=1\n")
        monkeypatch.chdir(tmp_path)

        assert read_env_file(["DOCKER_HOST"]) == {"DOCKER_HOST": "unix:///run/user/1000/docker.sock?x=1"}

    def test_skips_comments_and_blank_lines(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("# comment\n\nKEY1=value1\nnot a pair\n")
        monkeypatch.chdir(tmp_path)

        assert read_env_file(["KEY1"]) == {"KEY1": "value1"}

    def test_only_requested_keys(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("KEY1=value1\nKEY2=value2\n")
        monkeypatch.chdir(tmp_path)

        assert "KEY2" not in read_env_file(["KEY1"])

    def test_missing_file_returns_empty(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert read_env_file(["KEY1"]) == {}

    def test_empty_values_skipped(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("KEY1=\n")
        monkeypatch.chdir(tmp_path)

        assert "KEY1" not in read_env_file(["KEY1"])


class TestConstants:
    def test_socket_contract(self):
        assert config.ENV_UNIX_SOCKET_DIR == "PLUGIN_UNIX_SOCKET_DIR"
        assert config.ENV_UNIX_SOCKET_GROUP == "PLUGIN_UNIX_SOCKET_GROUP"
        assert config.CONTAINER_SOCKET_DIR == "/tmp"
        assert config.SOCKET_ADDR_PREFIX == "PLUGIN_UNIX_SOCKET_DIR:"

    def test_timeouts_positive(self):
        assert config.ENGINE_TIMEOUT > 0
        assert config.LOG_DRAIN_TIMEOUT > 0
