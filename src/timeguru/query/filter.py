# SPDX-License-Identifier: MIT

from abc import ABC, abstractmethod
from typing import Optional

import pendulum

from timeguru.model.entry import Entry
from timeguru.model.filter import EntryFilter
from timeguru.model.project import Project


def generate_filter(
    entry_filter: EntryFilter, projects: Optional[list[Project]] = None
) -> "Predicate":
    """Build the conjunction of every predicate the filter sets.

    Unset fields contribute nothing, so an empty filter keeps every entry.
    """
    conjunction = And()
    if entry_filter["project_id"] is not None:
        conjunction.add_predicate(ProjectPredicate(entry_filter["project_id"]))
    if entry_filter["tag"] is not None:
        conjunction.add_predicate(TagPredicate(entry_filter["tag"]))
    if entry_filter["client_id"] is not None:
        conjunction.add_predicate(
            ClientPredicate(entry_filter["client_id"], projects or [])
        )
    if entry_filter["billable"] is not None:
        conjunction.add_predicate(BillablePredicate(entry_filter["billable"]))
    if entry_filter["start"] is not None or entry_filter["end"] is not None:
        conjunction.add_predicate(
            DateRangePredicate(entry_filter["start"], entry_filter["end"])
        )
    return conjunction


def apply_filter(
    entries: list[Entry],
    entry_filter: EntryFilter,
    projects: Optional[list[Project]] = None,
) -> list[Entry]:
    return generate_filter(entry_filter, projects).filter(entries)


class Predicate(ABC):
    @abstractmethod
    def include(self, entry: Entry) -> bool: ...

    def filter(self, entries: list[Entry]) -> list[Entry]:
        return [entry for entry in entries if self.include(entry)]


class And(Predicate):
    def __init__(self) -> None:
        self.predicates: list[Predicate] = []

    def add_predicate(self, predicate: Predicate) -> None:
        self.predicates.append(predicate)

    def include(self, entry: Entry) -> bool:
        return all(predicate.include(entry) for predicate in self.predicates)


class ProjectPredicate(Predicate):
    def __init__(self, project_id: int) -> None:
        self.project_id = project_id

    def include(self, entry: Entry) -> bool:
        return entry["project_id"] == self.project_id


class TagPredicate(Predicate):
    """Matches entries carrying the tag, ignoring case."""

    def __init__(self, tag: str) -> None:
        self.tag = tag.casefold()

    def include(self, entry: Entry) -> bool:
        return any(tag.casefold() == self.tag for tag in entry["tags"] or [])


class ClientPredicate(Predicate):
    def __init__(self, client_id: int, projects: list[Project]) -> None:
        self.project_ids = {
            project["remote_id"]
            for project in projects
            if project["client_id"] == client_id
        }

    def include(self, entry: Entry) -> bool:
        return entry["project_id"] is not None and entry["project_id"] in self.project_ids


class BillablePredicate(Predicate):
    def __init__(self, billable: bool) -> None:
        self.billable = billable

    def include(self, entry: Entry) -> bool:
        return entry["billable"] == self.billable


class DateRangePredicate(Predicate):
    """Entries whose start lies in the half-open range [start, end)."""

    def __init__(
        self, start: Optional[pendulum.DateTime], end: Optional[pendulum.DateTime]
    ) -> None:
        self.start = start
        self.end = end

    def include(self, entry: Entry) -> bool:
        if self.start is not None and entry["start"] < self.start:
            return False
        if self.end is not None and entry["start"] >= self.end:
            return False
        return True
