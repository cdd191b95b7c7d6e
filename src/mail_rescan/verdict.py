# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the rspamd ``checkv2`` verdict.

Only the fields the rewrite engine consumes are typed; everything else in
the response is ignored so newer rspamd releases keep decoding.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AddHeader(BaseModel):
    """A header the milter wants added.

    Attributes:
        order: Position hint from rspamd (lower first).
        value: Literal header value.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    order: int = 0
    value: str = ""


class MilterMap(BaseModel):
    """Header add/remove instructions."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    add_headers: dict[str, list[AddHeader]] = Field(default_factory=dict)
    remove_headers: dict[str, int] = Field(default_factory=dict)

    @field_validator("add_headers", mode="before")
    @classmethod
    def coerce_plain_values(cls, v: Any) -> Any:
        """Normalize every entry to a list of ``{"value", "order"}`` objects.

        Accepts ``"bar"``, ``{"value": "bar"}`` and lists of either, the
        last being what rspamd sends for a header added more than once.
        """
        if not isinstance(v, dict):
            return v
        normalized = {}
        for name, item in v.items():
            items = item if isinstance(item, list) else [item]
            normalized[name] = [{"value": i, "order": 0} if isinstance(i, str) else i for i in items]
        return normalized


class Symbol(BaseModel):
    """A matched rule and its score contribution."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = ""
    score: float = 0.0
    metric_score: float = 0.0
    description: str | None = None
    options: list[str] = Field(default_factory=list)


class ClassificationVerdict(BaseModel):
    """Decoded rspamd result.

    Attributes:
        score: Overall message score.
        required_score: Threshold the score is compared against.
        action: Action rspamd would take (unused by the rewrite).
        symbols: Matched rules keyed by name. Wire order is meaningless;
            use ``sorted_symbols()`` when rendering.
        milter: Header add/remove instructions.
        urls: URLs found in the message (tolerated, unused).
        thresholds: Named action thresholds (tolerated, unused).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    score: float
    required_score: Annotated[float, Field(description="Score needed to be considered spam")]
    action: str | None = None
    symbols: dict[str, Symbol] = Field(default_factory=dict)
    milter: MilterMap = Field(default_factory=MilterMap)
    urls: list[str] = Field(default_factory=list)
    thresholds: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_symbol_names(cls, data: Any) -> Any:
        """Use the mapping key for symbols that omit ``name``."""
        if isinstance(data, dict) and isinstance(data.get("symbols"), dict):
            symbols = {}
            for key, item in data["symbols"].items():
                if isinstance(item, dict) and not item.get("name"):
                    item = {**item, "name": key}
                symbols[key] = item
            data = {**data, "symbols": symbols}
        return data

    def sorted_symbols(self) -> list[Symbol]:
        """Symbols in ascending name order."""
        return sorted(self.symbols.values(), key=lambda s: s.name)

    def removals(self) -> set[str]:
        """Lower-cased names the milter asked to remove."""
        return {name.lower() for name in self.milter.remove_headers}

    def additions(self) -> list[tuple[str, str]]:
        """Milter additions as ``(name, value)`` pairs ordered by ``(order, name)``.

        A header with several values yields one pair per value, in the
        order rspamd listed them.
        """
        items = [(name, header) for name, headers in self.milter.add_headers.items() for header in headers]
        items.sort(key=lambda item: (item[1].order, item[0]))
        return [(name, header.value) for name, header in items]

    def added_value(self, name: str) -> str | None:
        """First value of a milter addition looked up case-insensitively."""
        lname = name.lower()
        for key, headers in self.milter.add_headers.items():
            if key.lower() == lname and headers:
                return headers[0].value
        return None


__all__ = ["AddHeader", "ClassificationVerdict", "MilterMap", "Symbol"]
