from judge.config import SandboxConfig, Settings


def test_defaults():
    config = SandboxConfig()
    assert config.max_output_bytes == 2 * 1024 * 1024
    assert config.container_workdir == "/app"
    assert config.default_time_limit == 1.0
    assert config.run_time_limit == 10.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SANDBOX_RUN_TIME_LIMIT", "3.5")
    monkeypatch.setenv("SANDBOX_DOCKER_BASE_URL", "tcp://docker:2375")
    config = SandboxConfig()
    assert config.run_time_limit == 3.5
    assert config.docker_base_url == "tcp://docker:2375"


def test_debug_accepts_strings(monkeypatch):
    monkeypatch.setenv("DEBUG", "off")
    assert Settings(_env_file=None).debug is False
    monkeypatch.setenv("DEBUG", "yes")
    assert Settings(_env_file=None).debug is True
