import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "feature_type": "GithubCommentingBuildFeature",
    "github_base_url": "https://api.github.com",
    "github_timeout": 15,  # seconds; bounds every GitHub call made from the build-finish handler
    "submit_review": True,  # False = build the review draft but do not post it
    "batch_limit": 60,
    "request_changes_on_warnings": False,
    "log": "console",  # console | sqlite
    "log_path": ".buildlens.db",
}


def load_config(config_path: str = ".buildlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .buildlens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Last-resort credential when the build feature carries none.
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
