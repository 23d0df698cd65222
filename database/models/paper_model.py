# database/models/paper_model.py
from sqlalchemy import Column, Index, Text
from database.db import Base


class Paper(Base):
    __tablename__ = "papers"

    # Stable sort key for OFFSET pagination
    record_id = Column(Text, primary_key=True)

    # Descriptive
    title = Column(Text, nullable=True, index=True)
    subject = Column(Text, nullable=True)
    institution = Column(Text, nullable=True, index=True)
    journal = Column(Text, nullable=True, index=True)
    publisher = Column(Text, nullable=True, index=True)
    country = Column(Text, nullable=True, index=True)  # "India;USA"
    author = Column(Text, nullable=True, index=True)

    # Links
    urls = Column(Text, nullable=True)
    retraction_doi = Column(Text, nullable=True, index=True)
    retraction_pubmed_id = Column(Text, nullable=True, index=True)
    original_paper_doi = Column(Text, nullable=True, index=True)
    original_paper_pubmed_id = Column(Text, nullable=True, index=True)

    # Classification
    article_type = Column(Text, nullable=True, index=True)
    retraction_nature = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    paywalled = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Stored as text, compared lexically
    retraction_date = Column(Text, nullable=True, index=True)
    original_paper_date = Column(Text, nullable=True, index=True)

    __table_args__ = (
        Index("idx_journal_article_type", "journal", "article_type"),
        Index("idx_publisher_journal", "publisher", "journal"),
        Index("idx_date_range", "original_paper_date", "retraction_date"),
    )


# (column, JSON key) in response order
PAPER_FIELDS = [
    ("record_id", "Record ID"),
    ("title", "Title"),
    ("subject", "Subject"),
    ("institution", "Institution"),
    ("journal", "Journal"),
    ("publisher", "Publisher"),
    ("country", "Country"),
    ("author", "Author"),
    ("urls", "URLS"),
    ("article_type", "ArticleType"),
    ("retraction_date", "RetractionDate"),
    ("retraction_doi", "RetractionDOI"),
    ("retraction_pubmed_id", "RetractionPubMedID"),
    ("original_paper_date", "OriginalPaperDate"),
    ("original_paper_doi", "OriginalPaperDOI"),
    ("original_paper_pubmed_id", "OriginalPaperPubMedID"),
    ("retraction_nature", "RetractionNature"),
    ("reason", "Reason"),
    ("paywalled", "Paywalled"),
    ("notes", "Notes"),
]

PAPER_COLUMNS = [column for column, _ in PAPER_FIELDS]


def row_to_paper(row) -> dict:
    """Map a storage row (mapping) to the public JSON record shape."""
    return {key: row[column] for column, key in PAPER_FIELDS}


def paper_to_row(record: dict) -> dict:
    """Map a JSON/CSV record to storage columns; empty values become NULL."""
    row = {}
    for column, key in PAPER_FIELDS:
        value = record.get(key)
        if isinstance(value, str):
            value = value.strip()
        row[column] = value or None
    return row
