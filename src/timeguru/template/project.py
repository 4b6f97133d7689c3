# SPDX-License-Identifier: MIT

from timeguru.model.project import Project


def get_project_template() -> Project:
    return {
        "remote_id": 0,
        "account_id": 0,
        "workspace_id": 0,
        "client_id": None,
        "name": "",
        "color": None,
        "active": True,
        "billable": None,
    }
