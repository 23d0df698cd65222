import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import create_schema
from database.models.paper_model import Paper, paper_to_row


SAMPLE_RECORDS = [
    {
        "Record ID": "0001",
        "Title": "AI Ethics in Practice",
        "Subject": "(SOC) Philosophy;",
        "Institution": "Saveetha Dental College, Chennai",
        "Journal": "Journal of Applied Ethics",
        "Publisher": "Elsevier",
        "Country": "India",
        "Author": "Jane Doe;Ravi Kumar",
        "ArticleType": "Research Article",
        "RetractionDate": "2021-03-01",
        "RetractionDOI": "10.1000/RET.0001",
        "RetractionPubMedID": "33300001",
        "OriginalPaperDate": "2019-05-10",
        "OriginalPaperDOI": "10.1000/ORIG.0001",
        "OriginalPaperPubMedID": "31100001",
        "RetractionNature": "Retraction",
        "Reason": "+Duplication of Image;",
        "Paywalled": "No",
    },
    {
        "Record ID": "0002",
        "Title": "Machine Learning in Healthcare",
        "Institution": "SIMATS University",
        "Journal": "Health Informatics Review",
        "Publisher": "Springer",
        "Country": "India;USA",
        "Author": "John Smith",
        "ArticleType": "Review Article",
        "RetractionDate": "2022-01-15",
        "OriginalPaperDate": "2020-02-01",
        "OriginalPaperDOI": "10.2000/orig.0002",
        "OriginalPaperPubMedID": "3110 0002",
        "RetractionNature": "Retraction",
    },
    {
        "Record ID": "0003",
        "Title": "Quantum Computing Basics",
        "Institution": "Harvard University",
        "Journal": "Journal of Applied Ethics",
        "Publisher": "Elsevier",
        "Country": "USA",
        "Author": "Alice Johnson",
        "ArticleType": "Research Article",
        "RetractionDate": "2023-06-30",
        "OriginalPaperDate": "2021-11-08",
        "RetractionNature": "Expression of concern",
    },
    {
        "Record ID": "0004",
        "Title": "Deep Learning Architectures",
        "Institution": "Saveetha School of Engineering",
        "Journal": "Neural Systems",
        "Publisher": "IEEE",
        "Country": "United Kingdom",
        "Author": "Jane  Doe",
        "ArticleType": "Conference Abstract/Paper",
        "RetractionDate": "2021-03-01",
        "OriginalPaperDate": "2018-09-14",
        "RetractionNature": "Retraction",
    },
    {
        "Record ID": "0005",
        "Title": "Blockchain 100% Secure",
        "Institution": "",
        "Journal": "",
        "Publisher": "",
        "Country": "",
        "Author": "Charlie Brown",
        "ArticleType": "",
        "RetractionDate": "2020-12-31",
        "OriginalPaperDate": "2017-01-01",
    },
]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def seeded_engine(engine):
    with engine.begin() as conn:
        conn.execute(insert(Paper.__table__), [paper_to_row(r) for r in SAMPLE_RECORDS])
    return engine


@pytest.fixture
def session(seeded_engine):
    SessionLocal = sessionmaker(bind=seeded_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def empty_session(engine):
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sample_records():
    return [dict(r) for r in SAMPLE_RECORDS]
