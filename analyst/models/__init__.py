from models.schema import ColumnSchema, TableSchema, DatabaseSchema, ExtractionWarning  # noqa: F401
from models.chat import ChatMessage, ConversationState  # noqa: F401
from models.query import QueryResult  # noqa: F401
