# SPDX-License-Identifier: MIT

from dataclasses import dataclass
from enum import StrEnum

from timeguru.query.sort import SortMode


class ViewMode(StrEnum):
    FLAT = "flat"
    GROUPED = "grouped"
    GROUPED_BY_DAY = "grouped_by_day"


class Overlay(StrEnum):
    NONE = "none"
    PROJECT_SELECTOR = "project_selector"
    TEXT_EDIT = "text_edit"
    FILTER_PANEL = "filter_panel"
    ERROR_POPUP = "error_popup"


@dataclass
class DisplayToggles:
    view_mode: ViewMode = ViewMode.FLAT
    sort_mode: SortMode = SortMode.DEFAULT
    rounding: bool = True

    @property
    def grouped(self) -> bool:
        return self.view_mode != ViewMode.FLAT
