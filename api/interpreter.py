"""
Natural-language interpreter collaborator and the query use case built on it.

The interpreter is a black-box classifier: given the user's message and the
rivers currently known to storage, it returns an AgentIntent. Only the
presence of a river name is checked before storage is queried.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import json
import logging

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from core.config import settings
from core.exceptions import HydroException, InterpreterError
from ingestion.loaders.sqlite_loader import RiverRepository
from ingestion.timestamps import BELGRADE_TZ
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

FETCH_RIVER_DATA = "GetRiverDataByName"
GENERAL_QUERY = "GeneralQuery"

SYSTEM_PROMPT = """You are a water information assistant for rivers in Serbia and the Balkans.
You understand Serbian, English and Russian and always reply in the language the user wrote in.

Known rivers (Serbian names): {rivers}

1. If the user wants data for a specific river:
   - command_name = "GetRiverDataByName"
   - river_name = the matching Serbian name from the list, or "" if it is not on the list
   - user_message = a one-line confirmation in the user's language
2. Otherwise (greetings, small talk, unrelated questions):
   - command_name = "GeneralQuery"
   - river_name = ""
   - user_message = a short reply in the user's language

Output strictly JSON."""

AGENT_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "command_name": {"type": "string", "enum": [FETCH_RIVER_DATA, GENERAL_QUERY]},
        "river_name": {"type": "string"},
        "user_message": {"type": "string"},
    },
    "required": ["command_name", "river_name", "user_message"],
    "additionalProperties": False,
}


class AgentIntent(BaseModel):
    """Structured output of the interpreter"""
    command_name: str
    river_name: str = ""
    user_message: str = ""


class QueryInterpreter(ABC):
    """Contract for natural-language interpreters."""

    @abstractmethod
    async def interpret(self, message: str, rivers: List[str]) -> AgentIntent:
        """
        Classify message.

        Raises:
            InterpreterError: If no intent can be produced
        """
        pass


class OpenAIInterpreter(QueryInterpreter):
    """OpenAI chat completions with a strict JSON schema response format."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self._client = client

    def is_available(self) -> bool:
        return bool(self._client or self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def interpret(self, message: str, rivers: List[str]) -> AgentIntent:
        if not self.is_available():
            raise InterpreterError("Interpreter is not configured", context={"reason": "missing API key"})

        try:
            completion = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT.format(rivers=", ".join(rivers))},
                    {"role": "user", "content": message},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "agent_response",
                        "description": "Command, Serbian river name and user message",
                        "schema": AGENT_RESPONSE_SCHEMA,
                        "strict": True,
                    },
                },
            )
        except OpenAIError as e:
            raise InterpreterError("Error calling OpenAI API", context={"model": self.model}, original_exception=e)

        if not completion.choices or not completion.choices[0].message.content:
            raise InterpreterError("Received empty response from OpenAI", context={"model": self.model})

        content = completion.choices[0].message.content
        try:
            return AgentIntent(**json.loads(content))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.error(f"Failed to decode interpreter response: {content[:500]}")
            raise InterpreterError("Error decoding OpenAI response", original_exception=e)


def format_river_info(records: List[RiverRecord]) -> str:
    """Human-readable summary of a river's latest readings."""
    if not records:
        return "No information available for this river."

    lines = [f"Information for river {records[0].river}:", ""]
    for record in records:
        lines.append(f"📍 Station: {record.station}")
        lines.append(f"💧 Water Level: {record.water_level} cm")
        if record.water_temp:
            lines.append(f"🌡️ Water Temperature: {record.water_temp} °C")
        if record.tendency.value:
            lines.append(f"📈 Tendency: {record.tendency.value}")
        lines.append(f"🕒 Last update: {record.timestamp.astimezone(BELGRADE_TZ).strftime('%Y-%m-%d %H:%M:%S %Z')}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


async def answer_query(message: str, repository: RiverRepository, interpreter: QueryInterpreter) -> str:
    """Interpret message and build the reply, querying storage when a river was named."""
    logger.info(f"Interpreting natural language query: {message}")

    try:
        rivers = await repository.get_unique_rivers()
    except HydroException as e:
        logger.error(f"Error fetching available rivers: {e}")
        return "Sorry, I couldn't fetch the list of rivers right now."

    try:
        intent = await interpreter.interpret(message, rivers)
    except InterpreterError as e:
        logger.error(f"Error interpreting user query: {e}")
        return "Sorry, I'm having trouble understanding right now. Please try again later."

    logger.info(f"Agent response: command={intent.command_name!r}, river={intent.river_name!r}")

    if intent.command_name == GENERAL_QUERY:
        return intent.user_message

    if intent.command_name != FETCH_RIVER_DATA:
        logger.warning(f"Agent returned unexpected command: {intent.command_name}")
        return "I'm not sure how to respond to that."

    river = intent.river_name.strip()
    if not river:
        return intent.user_message

    try:
        records = await repository.get_by_river_name(river)
    except HydroException as e:
        logger.error(f"Error fetching river data after interpretation: {e}")
        return "Sorry, I couldn't fetch the data for that river right now."

    prefix = f"{intent.user_message}\n\n" if intent.user_message else ""
    if not records:
        return prefix + f"However, I couldn't find any information for river '{river}'."
    return prefix + format_river_info(records)
