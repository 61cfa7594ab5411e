"""Course store adapters implementing ICourseStore.

    SupabaseCourseStore -- production; PostgREST + pgvector RPC.
    SQLiteCourseStore   -- local development and tests; numpy cosine search.
"""

from coteacher.providers.store.sqlite_course_store import SQLiteCourseStore
from coteacher.providers.store.supabase_course_store import SupabaseCourseStore

__all__ = ["SQLiteCourseStore", "SupabaseCourseStore"]
