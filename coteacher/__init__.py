"""CoTeacher -- course-material RAG ingestion, course chat and lecture notes."""

__version__ = "0.1.0"
