"""Medication lookup models."""

from __future__ import annotations

from dataclasses import dataclass

from prevonto.core.http.decoding import PayloadReader


@dataclass
class MedicationSearchResult:
    name: str
    generic_name: str | None = None
    category: str | None = None
    match_type: str | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> MedicationSearchResult:
        return cls(
            name=reader.text("name"),
            generic_name=reader.opt_text("generic_name"),
            category=reader.opt_text("category"),
            match_type=reader.opt_text("match_type"),
        )


@dataclass
class MedicationSearchResponse:
    query: str
    results: list[MedicationSearchResult]
    total_results: int
    limit: int

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> MedicationSearchResponse:
        return cls(
            query=reader.text("query"),
            results=reader.nested_list("results", MedicationSearchResult),
            total_results=reader.integer("total_results"),
            limit=reader.integer("limit"),
        )
