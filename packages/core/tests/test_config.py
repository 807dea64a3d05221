"""Tests for configuration loading."""

import pytest

from prgate_core.config import BOT_LOGIN, HOLD_LABEL, BotConfig, ConfigError, load_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["min_required_approvals"] == 1
    assert config["merge_method"] == "merge"
    assert config["assign_owner_on_open"] is True


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("min_required_approvals: 2\nmerge_method: squash\n")
    config = load_config(config_path=str(cfg))
    assert config["min_required_approvals"] == 2
    assert config["merge_method"] == "squash"


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["min_required_approvals"] == 1


def test_non_mapping_config_file_rejected(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(config_path=str(cfg))


def test_invalid_yaml_rejected(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("min_required_approvals: [1\n")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(config_path=str(cfg))


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("min_required_approvals: 2\n")
    config = load_config(config_path=str(cfg), cli_overrides={"min_required_approvals": 3})
    assert config["min_required_approvals"] == 3


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".prgate.yml"
    cfg.write_text("min_required_approvals: 2\n")
    config = load_config(config_path=str(cfg), cli_overrides={"min_required_approvals": None})
    assert config["min_required_approvals"] == 2


def test_github_token_read_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["github_token"] == "gh-token"


class TestBotConfig:
    def test_defaults(self):
        config = BotConfig()
        assert config.min_required_approvals == 1
        assert config.bot_login == BOT_LOGIN
        assert config.hold_label == HOLD_LABEL == "hold"

    def test_from_dict(self):
        config = BotConfig.from_dict({"min_required_approvals": 2, "merge_method": "rebase"})
        assert config.min_required_approvals == 2
        assert config.merge_method == "rebase"

    def test_identity_and_label_not_configurable_from_file(self, tmp_path):
        cfg = tmp_path / ".prgate.yml"
        cfg.write_text("bot_login: someone-else\nhold_label: paused\n")
        config = BotConfig.from_dict(load_config(config_path=str(cfg)))
        assert config.bot_login == BOT_LOGIN
        assert config.hold_label == HOLD_LABEL

    @pytest.mark.parametrize("threshold", [0, -1, "2", 1.5, True, None])
    def test_invalid_threshold_rejected(self, threshold):
        with pytest.raises(ConfigError):
            BotConfig(min_required_approvals=threshold)

    def test_unknown_merge_method_rejected(self):
        with pytest.raises(ConfigError):
            BotConfig(merge_method="fast-forward")

    def test_is_immutable(self):
        config = BotConfig()
        with pytest.raises(AttributeError):
            config.min_required_approvals = 5

    @pytest.mark.parametrize("value", ["false", "no", 0, None])
    def test_non_boolean_assign_owner_rejected(self, value):
        with pytest.raises(ConfigError, match="assign_owner_on_open"):
            BotConfig.from_dict({"assign_owner_on_open": value})

    def test_assign_owner_false_from_file(self, tmp_path):
        cfg = tmp_path / ".prgate.yml"
        cfg.write_text("assign_owner_on_open: false\n")
        config = BotConfig.from_dict(load_config(config_path=str(cfg)))
        assert config.assign_owner_on_open is False
