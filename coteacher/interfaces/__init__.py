"""Public interface definitions for every external service CoTeacher touches.

Business logic (indexer, chat, transcription) depends only on the abstract
base classes in this package.  Concrete adapters live in
``coteacher/providers/`` and ``coteacher/services/ingestion/extractors/``
and are wired together once, in ``coteacher/main.py``.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    -----------------------------------------------------------------
    IEmbeddingProvider         ->  OpenAIEmbeddingProvider
    ILLMProvider               ->  OpenAILLMProvider
    ITranscriptionProvider     ->  WhisperAPIProvider
    IObjectStorage             ->  SupabaseStorageProvider,
                                   LocalFileStorageProvider
    ICourseStore               ->  SupabaseCourseStore, SQLiteCourseStore
    ITextExtractor             ->  PlainTextExtractor, PyMuPDFExtractor,
                                   DocxExtractor, PptxSlideExtractor
"""

from coteacher.interfaces.course_store import ICourseStore
from coteacher.interfaces.embedding_provider import IEmbeddingProvider
from coteacher.interfaces.llm_provider import ILLMProvider
from coteacher.interfaces.object_storage import IObjectStorage
from coteacher.interfaces.text_extractor import ITextExtractor
from coteacher.interfaces.transcription_provider import ITranscriptionProvider

__all__ = [
    "ICourseStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IObjectStorage",
    "ITextExtractor",
    "ITranscriptionProvider",
]
