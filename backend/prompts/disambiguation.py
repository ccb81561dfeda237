"""
LangChain prompt templates for table and column disambiguation.
"""
from langchain_core.prompts import PromptTemplate

# ── Table disambiguation ──────────────────────────────────────────────────────

TABLE_SUGGESTION_TEMPLATE = """\
You are a database expert helping map a REST API endpoint onto a relational schema.

ENDPOINT: {method} {path}
REQUESTED NAME: {candidate}

AVAILABLE TABLES:
{table_list}

KEY COLUMNS (first {context_limit} tables):
{schema_context}

Instructions:
- Suggest up to 5 existing tables that most likely hold the data for this endpoint.
- Only use table names from AVAILABLE TABLES.
- Give each suggestion a similarity score between 0 and 1 and one sentence of reasoning.
- List any foreign keys that connect the suggested tables.

Respond ONLY with JSON in this exact shape:
{{"suggestions": [{{"table": "<name>", "similarity": 0.9, "reasoning": "<why>"}}],
 "foreign_keys": [{{"table": "<name>", "column": "<column>", "references_table": "<name>", "references_column": "<column>"}}]}}
"""

table_suggestion_prompt = PromptTemplate(
    input_variables=["method", "path", "candidate", "table_list", "context_limit", "schema_context"],
    template=TABLE_SUGGESTION_TEMPLATE,
)

# ── Column disambiguation ─────────────────────────────────────────────────────

COLUMN_SUGGESTION_TEMPLATE = """\
You are a database expert helping generate test data for an API field that has no matching column.

FIELD: {field}
TABLES IN SCOPE: {tables}

COLUMNS OF THOSE TABLES:
{columns}

Instructions:
- Infer the most plausible data type for the field (string, integer, number, boolean, date, date-time, uuid).
- Give a short list (at most 5) of realistic example values.

Respond ONLY with JSON in this exact shape:
{{"data_type": "<type>", "value_range": ["<value>", "<value>"], "reasoning": "<why>"}}
"""

column_suggestion_prompt = PromptTemplate(
    input_variables=["field", "tables", "columns"],
    template=COLUMN_SUGGESTION_TEMPLATE,
)
