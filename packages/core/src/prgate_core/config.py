import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

BOT_LOGIN = "prgate[bot]"
HOLD_LABEL = "hold"

MERGE_METHODS = ("merge", "squash", "rebase")

DEFAULT_CONFIG: dict = {
    "min_required_approvals": 1,
    "merge_method": "merge",
    "assign_owner_on_open": True,
}


class ConfigError(ValueError):
    """Raised when .prgate.yml holds a value the bot cannot run with."""


def load_config(config_path: str = ".prgate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prgate.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"{config_path} is not valid YAML: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a YAML mapping.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


@dataclass(frozen=True)
class BotConfig:
    """Settings handed to the command pipeline once at startup.

    Frozen so that nothing in a single event's handling can change the
    threshold seen by the next one. ``bot_login`` and ``hold_label`` are
    fixed constants rather than YAML keys.

    ``bot_login`` only matches when prgate runs as the prgate GitHub App.
    Under the Actions ``GITHUB_TOKEN`` the bot acts as github-actions[bot],
    and under a personal access token as that token's owner, so neither the
    self-loop guard nor the bot shortcut in authorization sees those
    comments as its own. GITHUB_TOKEN comments do not trigger workflows, but
    a personal access token owner's own commands are still handled.
    """

    min_required_approvals: int = 1
    merge_method: str = "merge"
    assign_owner_on_open: bool = True
    bot_login: str = BOT_LOGIN
    hold_label: str = HOLD_LABEL

    def __post_init__(self):
        threshold = self.min_required_approvals
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
            raise ConfigError(f"min_required_approvals must be an integer >= 1, got {threshold!r}.")
        if self.merge_method not in MERGE_METHODS:
            raise ConfigError(
                f"Unknown merge_method: {self.merge_method!r}. Choose one of {', '.join(MERGE_METHODS)}."
            )
        if not isinstance(self.assign_owner_on_open, bool):
            raise ConfigError(f"assign_owner_on_open must be true or false, got {self.assign_owner_on_open!r}.")

    @classmethod
    def from_dict(cls, config: dict) -> "BotConfig":
        return cls(
            min_required_approvals=config.get("min_required_approvals", DEFAULT_CONFIG["min_required_approvals"]),
            merge_method=config.get("merge_method", DEFAULT_CONFIG["merge_method"]),
            assign_owner_on_open=config.get("assign_owner_on_open", DEFAULT_CONFIG["assign_owner_on_open"]),
        )
