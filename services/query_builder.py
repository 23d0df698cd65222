# File: services/query_builder.py
"""
Translates a sparse filter object into a parameterized WHERE clause.

Every user value (and every alias pattern) is emitted as a named bind
parameter (:p0, :p1, ...). Only column names, SQL functions and operators are
literal text, so the clause is safe to splice into a statement.
"""
import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

FREE_TEXT_FIELDS = {
    "author": "author",
    "title": "title",
}

CATEGORICAL_FIELDS = {
    "articleType": "article_type",
    "journal": "journal",
    "publisher": "publisher",
}

DATE_RANGE_FIELDS = [
    ("originalPaperFromDate", "originalPaperToDate", "original_paper_date"),
    ("retractionFromDate", "retractionToDate", "retraction_date"),
]

PUBMED_FIELDS = {
    "originalPaperPubMedID": "original_paper_pubmed_id",
    "retractionPubMedID": "retraction_pubmed_id",
}

DOI_FIELDS = {
    "originalPaperDOI": "original_paper_doi",
    "retractionDOI": "retraction_doi",
}

FILTER_FIELDS = (
    "author",
    "title",
    "articleType",
    "country",
    "journal",
    "publisher",
    "institution",
    "affiliation",
    "originalPaperFromDate",
    "originalPaperToDate",
    "originalPaperPubMedID",
    "originalPaperDOI",
    "retractionFromDate",
    "retractionToDate",
    "retractionPubMedID",
    "retractionDOI",
)

_WHITESPACE = re.compile(r"\s+")
_LIKE_SPECIALS = re.compile(r"([\\%_])")


@dataclass(frozen=True)
class AliasPattern:
    pattern: str
    strip_spaces: bool = False


@dataclass(frozen=True)
class InstitutionAlias:
    canonical: str
    keywords: Tuple[str, ...]
    patterns: Tuple[AliasPattern, ...]


INSTITUTION_ALIASES: Tuple[InstitutionAlias, ...] = (
    InstitutionAlias(
        canonical="Saveetha Institute of Medical and Technical Sciences (SIMATS)",
        keywords=(
            "saveetha",
            "simats",
            "sse",
            "saveethaengineeringcollege",
            "saveetha engineering college",
            "saveetha school of engineering",
            "saveetha institute of medical and technical sciences",
            "simats university",
            "simats deemed university",
            "saveetha dental college",
            "saveetha medical college",
        ),
        patterns=(
            AliasPattern("%saveetha%"),
            AliasPattern("%simats%"),
            AliasPattern("%saveethaengineeringcollege%"),
            AliasPattern("%saveethaengineeringcollege%", strip_spaces=True),
            AliasPattern("%saveethaschoolofengineering%", strip_spaces=True),
            AliasPattern("%saveethainstituteofmedicalandtechnicalsciences%", strip_spaces=True),
            AliasPattern("%simatsuniversity%", strip_spaces=True),
            AliasPattern("%simatsdeemed%", strip_spaces=True),
        ),
    ),
)


def normalize_for_search(value: Optional[str]) -> str:
    """Lowercase, trim and drop all whitespace."""
    if not value:
        return ""
    return _WHITESPACE.sub("", value.lower().strip())


def _escape_like(value: str) -> str:
    return _LIKE_SPECIALS.sub(r"\\\1", value)


def _contains(value: str) -> str:
    return f"%{_escape_like(value)}%"


def resolve_institution_alias(
    term: Optional[str],
    aliases: Tuple[InstitutionAlias, ...] = INSTITUTION_ALIASES,
) -> Optional[InstitutionAlias]:
    """
    Return the alias entry whose keywords match `term`, if any.

    Matching is space- and case-insensitive and bidirectional: the term may
    contain a keyword or be contained in one.
    """
    normalized = normalize_for_search(term)
    if not normalized:
        return None

    for alias in aliases:
        for keyword in alias.keywords:
            normalized_keyword = normalize_for_search(keyword)
            if normalized_keyword in normalized or normalized in normalized_keyword:
                return alias
    return None


def clean_filters(raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Keep only known filter fields holding non-blank strings, trimmed.
    Non-string values are ignored rather than rejected.
    """
    if not raw:
        return {}

    cleaned = {}
    for field in FILTER_FIELDS:
        value = raw.get(field)
        if isinstance(value, str) and value.strip():
            cleaned[field] = value.strip()
    return cleaned


class _ClauseBuilder:
    def __init__(self):
        self.conditions: List[str] = []
        self.params: List[str] = []

    def bind(self, value: str) -> str:
        name = f":p{len(self.params)}"
        self.params.append(value)
        return name

    def add(self, condition: str):
        self.conditions.append(condition)

    def free_text(self, column: str, term: str):
        normalized = self.bind(_contains(normalize_for_search(term)))
        raw = self.bind(_contains(term.lower()))
        self.add(
            f"(LOWER(REPLACE({column}, ' ', '')) LIKE {normalized} ESCAPE '\\' "
            f"OR LOWER({column}) LIKE {raw} ESCAPE '\\')"
        )

    def categorical(self, column: str, term: str):
        normalized = self.bind(normalize_for_search(term))
        raw = self.bind(term)
        self.add(
            f"(LOWER(REPLACE({column}, ' ', '')) = {normalized} "
            f"OR LOWER({column}) = LOWER({raw}))"
        )

    def multi_value(self, column: str, term: str):
        lowered = term.lower()
        normalized = self.bind(_contains(normalize_for_search(term)))
        raw = self.bind(_contains(lowered))
        token = self.bind(_contains(f";{lowered}"))
        self.add(
            f"(LOWER(REPLACE({column}, ' ', '')) LIKE {normalized} ESCAPE '\\' "
            f"OR LOWER({column}) LIKE {raw} ESCAPE '\\' "
            f"OR LOWER({column}) LIKE {token} ESCAPE '\\')"
        )

    def alias(self, column: str, alias: InstitutionAlias):
        parts = []
        for entry in alias.patterns:
            target = f"LOWER(REPLACE({column}, ' ', ''))" if entry.strip_spaces else f"LOWER({column})"
            parts.append(f"{target} LIKE {self.bind(entry.pattern)}")
        self.add("(" + " OR ".join(parts) + ")")

    def date_range(self, column: str, start: Optional[str], end: Optional[str]):
        if start and end:
            self.add(f"({column} >= {self.bind(start)} AND {column} <= {self.bind(end)})")
        elif start:
            self.add(f"{column} >= {self.bind(start)}")
        elif end:
            self.add(f"{column} <= {self.bind(end)}")

    def identifier(self, column: str, term: str, case_insensitive: bool = False):
        if case_insensitive:
            stripped = self.bind(_contains(normalize_for_search(term)))
            raw = self.bind(_contains(term.lower()))
            self.add(
                f"(LOWER(REPLACE({column}, ' ', '')) LIKE {stripped} ESCAPE '\\' "
                f"OR LOWER({column}) LIKE {raw} ESCAPE '\\')"
            )
        else:
            stripped = self.bind(_contains(_WHITESPACE.sub("", term)))
            raw = self.bind(_contains(term))
            self.add(
                f"(REPLACE({column}, ' ', '') LIKE {stripped} ESCAPE '\\' "
                f"OR {column} LIKE {raw} ESCAPE '\\')"
            )

    def where(self) -> str:
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)


def build_where_clause(
    filters: Optional[Mapping[str, Any]],
    aliases: Tuple[InstitutionAlias, ...] = INSTITUTION_ALIASES,
) -> Tuple[str, List[str]]:
    """
    Build `(where_clause, params)` for a sparse filter object.

    `params` is ordered: params[i] binds to the :p{i} placeholder.
    The clause is '' when no filter is active.
    """
    active = clean_filters(filters)
    builder = _ClauseBuilder()

    for field, column in FREE_TEXT_FIELDS.items():
        if field in active:
            builder.free_text(column, active[field])

    for field, column in CATEGORICAL_FIELDS.items():
        if field in active:
            builder.categorical(column, active[field])

    if "country" in active:
        builder.multi_value("country", active["country"])

    # institution wins over affiliation when both are supplied
    institution = active.get("institution") or active.get("affiliation")
    if institution:
        alias = resolve_institution_alias(institution, aliases)
        if alias:
            logger.debug(f"Institution '{institution}' expanded to alias '{alias.canonical}'")
            builder.alias("institution", alias)
        else:
            builder.free_text("institution", institution)

    for start_field, end_field, column in DATE_RANGE_FIELDS:
        builder.date_range(column, active.get(start_field), active.get(end_field))

    for field, column in PUBMED_FIELDS.items():
        if field in active:
            builder.identifier(column, active[field])

    for field, column in DOI_FIELDS.items():
        if field in active:
            builder.identifier(column, active[field], case_insensitive=True)

    return builder.where(), builder.params


def bind_params(params: List[Any]) -> Dict[str, Any]:
    """Turn the ordered parameter list into the mapping SQLAlchemy expects."""
    return {f"p{index}": value for index, value in enumerate(params)}
