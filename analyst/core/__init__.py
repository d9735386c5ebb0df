from core.schema_extractor import SchemaExtractor  # noqa: F401
from core.schema_cache import SchemaCache, compute_hash  # noqa: F401
from core.schema_describer import describe_schema  # noqa: F401
from core.schema_loader import get_database_schema  # noqa: F401
from core.query_session import QuerySession  # noqa: F401
