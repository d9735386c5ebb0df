"""
LangChain prompt templates for the SQL query assistant.
"""
from langchain_core.prompts import PromptTemplate

# ── System prompt (injected once per session) ─────────────────────────────────

SQL_ASSISTANT_SYSTEM_TEMPLATE = """\
# SQL Query Assistant

You are a Data Analyst and SQL expert assistant for the database: {database_name}
You help translate natural language questions about databases into SQL queries.

## Database Schema
{schema_description}

## Guidelines
- Use proper T-SQL syntax for SQL Server
- Include appropriate JOINs when data from multiple tables is needed
- Format your output as a clear explanation followed by the SQL query in ```sql``` code blocks
- Always use schema name in the query (example: dbo.TableName)
- For queries that involve aggregations, add appropriate GROUP BY clauses
- Handle NULLs appropriately
"""

system_prompt = PromptTemplate(
    input_variables=["database_name", "schema_description"],
    template=SQL_ASSISTANT_SYSTEM_TEMPLATE,
)

# ── Synthetic conversation notes ──────────────────────────────────────────────

EXECUTED_NOTE = "I executed the query and it returned {row_count} rows."
NOT_EXECUTED_NOTE = "I chose not to execute this query."
NO_SQL_NOTE = "I couldn't generate a valid SQL query for your request."
ERROR_NOTE = "I encountered an error: {error}"
