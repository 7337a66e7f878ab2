import os

from teachgen.utils.env import StudioConfig, ensure_env_loaded


def test_defaults(monkeypatch):
    for name in ("SAMPLER_MAX_ATTEMPTS", "DUPLICATE_THRESHOLD", "HISTORY_RESET_TARGET", "SEARCH_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    config = StudioConfig.from_env()
    assert config.max_attempts == 3
    assert config.duplicate_threshold == 0.9
    assert config.history_reset_target == "previous"
    assert config.search_limit == 10


def test_bad_values_fall_back_or_clamp(monkeypatch):
    monkeypatch.setenv("SAMPLER_MAX_ATTEMPTS", "lots")
    monkeypatch.setenv("DUPLICATE_THRESHOLD", "7")
    monkeypatch.setenv("HISTORY_RESET_TARGET", "sideways")
    monkeypatch.setenv("SEARCH_LIMIT", "0")
    config = StudioConfig.from_env()
    assert config.max_attempts == 3
    assert config.duplicate_threshold == 1.0
    assert config.history_reset_target == "previous"
    assert config.search_limit == 1


def test_reset_target_current(monkeypatch):
    monkeypatch.setenv("HISTORY_RESET_TARGET", " Current ")
    assert StudioConfig.from_env().history_reset_target == "current"


def test_env_file_accepts_colon_syntax(tmp_path, monkeypatch):
    monkeypatch.delenv("TEACHGEN_TEST_COLON", raising=False)
    monkeypatch.delenv("TEACHGEN_TEST_EQUALS", raising=False)
    env = tmp_path / ".env"
    env.write_text('TEACHGEN_TEST_COLON: "from colon"\nTEACHGEN_TEST_EQUALS=plain\n# comment\n', encoding="utf-8")
    try:
        ensure_env_loaded(str(env))
        assert os.environ["TEACHGEN_TEST_COLON"] == "from colon"
        assert os.environ["TEACHGEN_TEST_EQUALS"] == "plain"
    finally:
        os.environ.pop("TEACHGEN_TEST_COLON", None)
        os.environ.pop("TEACHGEN_TEST_EQUALS", None)
