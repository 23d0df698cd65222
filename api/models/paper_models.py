# File: api/models/paper_models.py
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional


class SearchRequest(BaseModel):
    author: Optional[str] = None
    title: Optional[str] = None
    articleType: Optional[str] = None
    country: Optional[str] = None
    journal: Optional[str] = None
    publisher: Optional[str] = None
    affiliation: Optional[str] = None
    institution: Optional[str] = None
    originalPaperFromDate: Optional[str] = None
    originalPaperToDate: Optional[str] = None
    originalPaperPubMedID: Optional[str] = None
    originalPaperDOI: Optional[str] = None
    retractionFromDate: Optional[str] = None
    retractionToDate: Optional[str] = None
    retractionPubMedID: Optional[str] = None
    retractionDOI: Optional[str] = None

    page: int = 1
    limit: int = 100

    @field_validator(
        "author", "title", "articleType", "country", "journal", "publisher",
        "affiliation", "institution", "originalPaperFromDate", "originalPaperToDate",
        "originalPaperPubMedID", "originalPaperDOI", "retractionFromDate",
        "retractionToDate", "retractionPubMedID", "retractionDOI",
        mode="before",
    )
    @classmethod
    def ignore_non_string(cls, value: Any) -> Optional[str]:
        # Non-string filter values are dropped, not rejected
        return value if isinstance(value, str) else None

    def filters(self) -> Dict[str, Optional[str]]:
        return self.model_dump(exclude={"page", "limit"})


class PaperPage(BaseModel):
    count: int
    page: int
    limit: int
    totalPages: int
    results: List[Dict[str, Optional[str]]] = Field(default_factory=list)


class FilterOptions(BaseModel):
    articleTypes: List[str]
    countries: List[str]
    journals: List[str]
    publishers: List[str]
