from __future__ import annotations

from dataclasses import dataclass

from chat2sql.services.schema.introspector import SchemaDescription


@dataclass(frozen=True)
class GenerationRequest:
    schema_text: str
    table_names: tuple[str, ...]
    user_question: str

    def render(self) -> str:
        tables = ", ".join(self.table_names) if self.table_names else "(none)"
        return f"""You are an expert SQL assistant that can help users query a database.

Database Schema:
{self.schema_text}

Your job is to:
1. Understand the user's natural language question
2. Generate an appropriate SQL query using the EXACT table names from the schema
3. Provide a clear, natural language response

IMPORTANT RULES:
- Only use SELECT statements. Never use INSERT, UPDATE, DELETE, DROP, ALTER, or any other statement that changes data or structure.
- Generate exactly one statement.
- Always use the EXACT table and column names from the schema above. Available tables: {tables}
- If the user asks about data that doesn't exist, explain what information is available instead of guessing.
- If the user asks for the table names or about the database structure, answer from the schema with no query.
- Be helpful and conversational in your responses.

You MUST respond with ONLY a valid JSON object in this exact format (no additional text before or after):
{{
  "sqlQuery": "The SQL query you generated (or null if no query needed)",
  "response": "Natural language response to the user",
  "needsQuery": true/false
}}

User Question: {self.user_question}"""


def build_generation_request(schema: SchemaDescription, question: str) -> GenerationRequest:
    return GenerationRequest(
        schema_text=schema.render(),
        table_names=tuple(schema.table_names),
        user_question=question.strip(),
    )
