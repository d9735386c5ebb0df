"""
Query session — the natural-language → SQL conversation loop.

Each turn: read a request, ask the LLM (schema-bearing system prompt injected on the
first turn only), pull the SQL out of the reply, optionally run it, and record the
outcome in the conversation so the model sees it on the next turn. A failed turn is
reported and recorded; it never ends the session.
"""
import logging
from enum import Enum
from typing import Callable, Protocol

from core.console import Style, Terminal, confirm, message, render_answer, render_results
from core.response_parser import clean_answer, extract_sql
from core.schema_describer import describe_schema
from models.chat import ConversationState
from models.query import QueryResult
from models.schema import DatabaseSchema
from prompts.sql_assistant import (
    ERROR_NOTE, EXECUTED_NOTE, NO_SQL_NOTE, NOT_EXECUTED_NOTE, system_prompt,
)

logger = logging.getLogger(__name__)

EXIT_KEYWORDS = {"exit", "quit"}


class SessionState(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    GENERATING = "generating"
    PARSED_OK = "parsed_ok"
    PARSED_EMPTY = "parsed_empty"
    AWAITING_EXECUTE_DECISION = "awaiting_execute_decision"
    CLOSED = "closed"


class ChatModel(Protocol):
    def chat(self, messages: list[dict]) -> str: ...


QueryExecutor = Callable[[str], QueryResult]


class QuerySession:
    def __init__(
        self,
        schema: DatabaseSchema,
        llm: ChatModel,
        execute: QueryExecutor,
        terminal: Terminal,
        max_cell_width: int = 40,
    ):
        self.schema = schema
        self.llm = llm
        self.execute = execute
        self.terminal = terminal
        self.max_cell_width = max_cell_width
        self.schema_description = describe_schema(schema)
        self.conversation = ConversationState()
        self.state = SessionState.AWAITING_INPUT

    def run(self) -> None:
        while self.state != SessionState.CLOSED:
            self.step()

    def step(self) -> None:
        """Run one AwaitingInput → … → AwaitingInput cycle (or close)."""
        self.state = SessionState.AWAITING_INPUT
        self.terminal.write(
            message("\nEnter your query in natural language (or 'exit' or press ENTER to quit):", Style.PROMPT)
        )
        user_input = self.terminal.read_line().strip()
        if not user_input or user_input.lower() in EXIT_KEYWORDS:
            self.state = SessionState.CLOSED
            return
        self.handle_request(user_input)
        self.state = SessionState.AWAITING_INPUT

    def handle_request(self, user_input: str) -> None:
        recorded = False
        try:
            self.state = SessionState.GENERATING
            self.terminal.write(message("Generating SQL query...", Style.PROMPT))
            self._inject_system_prompt()
            self.conversation.add_user_message(user_input)
            recorded = True

            answer = self.llm.chat(self.conversation.as_payload())
            self.conversation.add_assistant_message(answer)

            sql = extract_sql(answer)
            self.terminal.write(render_answer(clean_answer(answer), sql))
            if sql:
                self.state = SessionState.PARSED_OK
                self._offer_execution(sql)
            else:
                self.state = SessionState.PARSED_EMPTY
                self.terminal.write(message("\nNo SQL query was generated from the response.", Style.ERROR))
                self.conversation.add_assistant_message(NO_SQL_NOTE)
        except Exception as e:
            logger.warning("Turn failed: %s", e)
            self.terminal.write(message(f"❌ Error: {e}", Style.ERROR))
            if not recorded:
                self.conversation.add_user_message(user_input)
            self.conversation.add_assistant_message(ERROR_NOTE.format(error=e))

    def _inject_system_prompt(self) -> None:
        if self.conversation.system_prompt_injected:
            return
        content = system_prompt.format(
            database_name=self.schema.database_name,
            schema_description=self.schema_description,
        )
        self.conversation.inject_system_prompt(content)
        logger.debug("System prompt injected (%d chars)", len(content))

    def _offer_execution(self, sql: str) -> None:
        self.state = SessionState.AWAITING_EXECUTE_DECISION
        if not confirm(self.terminal, "\nDo you want to execute this query? (y(es)/n(o))"):
            self.conversation.add_user_message(NOT_EXECUTED_NOTE)
            return

        self.terminal.write(message("Executing query...", Style.PROMPT))
        result = self.execute(sql)
        self.terminal.write(render_results(result, self.max_cell_width))
        self.conversation.add_user_message(EXECUTED_NOTE.format(row_count=result.row_count))
