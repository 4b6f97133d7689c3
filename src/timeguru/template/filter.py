# SPDX-License-Identifier: MIT

from timeguru.model.filter import EntryFilter


def get_filter_template() -> EntryFilter:
    return {
        "project_id": None,
        "tag": None,
        "client_id": None,
        "billable": None,
        "start": None,
        "end": None,
    }
