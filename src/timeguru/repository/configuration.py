# SPDX-License-Identifier: MIT

from copy import deepcopy
from typing import Optional

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from timeguru import configuration


class ConfigurationRepository:
    def __init__(self) -> None:
        self._config: Optional[configuration.Configuration] = None
        self.is_dirty = False

    @property
    def config(self) -> configuration.Configuration:
        if self._config is None:
            self.__load_data()
        if self._config is None:
            raise ValueError()
        return self._config

    def __load_data(self) -> None:
        loaded = None
        if configuration.APP_CONFIG_PATH.is_file():
            loaded = load(configuration.APP_CONFIG_PATH.read_text(), Loader=Loader)
        if loaded is None:
            loaded = {}

        # Fill in settings added after the file was first written
        defaults = configuration.get_default_configuration()
        for key, value in defaults.items():
            if key not in loaded:
                loaded[key] = value
                self.is_dirty = True

        self._config = loaded

    def __save_data(self, config: configuration.Configuration) -> None:
        configuration.CONFIG_PATH.mkdir(parents=True, exist_ok=True)
        configuration.APP_CONFIG_PATH.write_text(dump(dict(config), Dumper=Dumper))

    def flush(self) -> bool:
        if self._config is not None and self.is_dirty:
            self.__save_data(self._config)
            self.is_dirty = False
            return True
        return False

    def reset(self) -> None:
        """Forget the cached configuration so the next access reloads it."""
        self._config = None
        self.is_dirty = False

    def get_config(self) -> configuration.Configuration:
        return deepcopy(self.config)

    def update_config(
        self,
        api_token: Optional[str] = None,
        remove_api_token: bool = False,
        default_date_range_days: Optional[int] = None,
        sync_range_days: Optional[int] = None,
        round_duration_minutes: Optional[int] = None,
        remove_round_duration: bool = False,
        current_user_id: Optional[int] = None,
        current_user_email: Optional[str] = None,
        default_workspace_id: Optional[int] = None,
        data_path: Optional[str] = None,
        remove_data_path: bool = False,
    ) -> None:
        self.is_dirty = True

        if api_token is not None:
            self.config["api_token"] = api_token
        if remove_api_token:
            self.config["api_token"] = None
        if default_date_range_days is not None:
            self.config["default_date_range_days"] = default_date_range_days
        if sync_range_days is not None:
            self.config["sync_range_days"] = sync_range_days
        if round_duration_minutes is not None:
            self.config["round_duration_minutes"] = round_duration_minutes
        if remove_round_duration:
            self.config["round_duration_minutes"] = None
        if current_user_id is not None:
            self.config["current_user_id"] = current_user_id
        if current_user_email is not None:
            self.config["current_user_email"] = current_user_email
        if default_workspace_id is not None:
            self.config["default_workspace_id"] = default_workspace_id
        if data_path is not None:
            self.config["data_path"] = data_path
        if remove_data_path:
            self.config["data_path"] = None


CONFIGURATION_REPO = ConfigurationRepository()
