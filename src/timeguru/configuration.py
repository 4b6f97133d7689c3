# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Optional, TypedDict

from yaml import load

try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader  # type: ignore[assignment]
import platformdirs

APP_NAME = "timeguru"

API_TOKEN_ENV = "TIMEGURU_API_TOKEN"
LOG_LEVEL_ENV = "TIMEGURU_LOG_LEVEL"

CONFIG_PATH = platformdirs.user_config_path(APP_NAME)
APP_CONFIG_PATH = CONFIG_PATH / "config.yaml"

LOG_PATH: Path = platformdirs.user_log_path(APP_NAME)
LOG_FILE_PATH: Path = LOG_PATH / "app.log"

# These will be set dynamically by load_data_path_configuration()
DATA_PATH: Path = platformdirs.user_data_path(APP_NAME)
DATA_DATABASE_PATH: Path = DATA_PATH / "timeguru.db"


class Configuration(TypedDict):
    api_token: Optional[str]
    default_date_range_days: int
    sync_range_days: int
    round_duration_minutes: Optional[int]
    current_user_id: Optional[int]
    current_user_email: Optional[str]
    default_workspace_id: Optional[int]
    data_path: Optional[str]


def get_default_configuration() -> Configuration:
    return {
        "api_token": None,
        "default_date_range_days": 7,
        "sync_range_days": 90,
        "round_duration_minutes": 15,
        "current_user_id": None,
        "current_user_email": None,
        "default_workspace_id": None,
        "data_path": None,
    }


def load_data_path_configuration() -> None:
    """
    Load the configuration and set the DATA_PATH variables dynamically.

    This must be called after the config file exists and before the
    local store is opened.
    """
    global DATA_PATH, DATA_DATABASE_PATH

    if not APP_CONFIG_PATH.is_file():
        # Config doesn't exist yet, use defaults
        return

    config: Optional[Configuration] = load(APP_CONFIG_PATH.read_text(), Loader=Loader)
    if config is None:
        return
    data_path_setting = config.get("data_path")

    if data_path_setting is not None:
        DATA_PATH = Path(data_path_setting)
        DATA_DATABASE_PATH = DATA_PATH / "timeguru.db"
