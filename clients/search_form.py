# clients/search_form.py
from dataclasses import dataclass, field, fields
from datetime import date, timedelta
from typing import Callable, Dict, Optional

from services.query_builder import INSTITUTION_ALIASES, resolve_institution_alias


@dataclass
class SearchForm:
    """Filter input captured from the user, one attribute per API filter field."""

    author: str = ""
    title: str = ""
    articleType: str = ""
    country: str = ""
    journal: str = ""
    publisher: str = ""
    institution: str = ""
    affiliation: str = ""
    originalPaperFromDate: str = ""
    originalPaperToDate: str = ""
    originalPaperPubMedID: str = ""
    originalPaperDOI: str = ""
    retractionFromDate: str = ""
    retractionToDate: str = ""
    retractionPubMedID: str = ""
    retractionDOI: str = ""

    def to_filters(self) -> Dict[str, str]:
        filters = {}
        for f in fields(self):
            value = (getattr(self, f.name) or "").strip()
            if value:
                filters[f.name] = value
        return filters

    def update(self, **values: str):
        names = {f.name for f in fields(self)}
        for name, value in values.items():
            if name not in names:
                raise KeyError(f"Unknown filter field: {name}")
            setattr(self, name, value or "")

    def clear(self):
        for f in fields(self):
            setattr(self, f.name, "")

    def institution_alias(self) -> Optional[str]:
        """
        Canonical institution the current input expands to, or None.
        Institution input takes precedence over affiliation, as on the server.
        """
        term = self.institution.strip() or self.affiliation.strip()
        alias = resolve_institution_alias(term)
        return alias.canonical if alias else None

    def apply_preset(self, name: str, presets: Optional[Dict[str, "QuickFilter"]] = None):
        presets = presets if presets is not None else QUICK_FILTERS
        if name not in presets:
            raise KeyError(f"Unknown quick filter: {name}")
        self.update(**presets[name].build())

    def submit(self, on_search: Callable[[Dict[str, str]], None]) -> Dict[str, str]:
        filters = self.to_filters()
        on_search(filters)
        return filters


@dataclass
class QuickFilter:
    label: str
    values: Dict[str, str] = field(default_factory=dict)
    builder: Optional[Callable[[], Dict[str, str]]] = None

    def build(self) -> Dict[str, str]:
        values = dict(self.values)
        if self.builder:
            values.update(self.builder())
        return values


def _retracted_since(days: int) -> Callable[[], Dict[str, str]]:
    def build() -> Dict[str, str]:
        return {
            "retractionFromDate": (date.today() - timedelta(days=days)).isoformat(),
            "retractionToDate": "",
        }
    return build


QUICK_FILTERS: Dict[str, QuickFilter] = {
    "saveetha": QuickFilter(
        label=INSTITUTION_ALIASES[0].canonical,
        values={"institution": "Saveetha", "affiliation": ""},
    ),
    "last-year": QuickFilter(label="Retracted in the last 12 months", builder=_retracted_since(365)),
    "last-5-years": QuickFilter(label="Retracted in the last 5 years", builder=_retracted_since(5 * 365)),
}
