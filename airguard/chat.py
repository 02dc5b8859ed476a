"""Conversational air-quality assistant powered by the Anthropic Claude API.

The assistant answers questions about the user's current air using the
dashboard data as context, and can look up any other city through the
``getCityAirQuality`` tool. A single user turn may therefore take several
round trips:

    user text -> Claude -> tool_use -> geocode + fetch AQI -> tool_result
              -> Claude -> ... -> final text

Tool calls requested in one response are all resolved before Claude is
called again, and the number of round trips per turn is capped.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable

import anthropic
from loguru import logger

from airguard import config
from airguard.air_quality import AirQualityAPIError, AirQualityReading, fetch_air_quality, reading_to_dict
from airguard.geocoding import get_coordinates_for_city


class ChatError(Exception):
    """Raised when the chat session cannot be created or used."""


class ChatBusyError(ChatError):
    """Raised when a message is sent while the previous one is still pending."""


@dataclass(frozen=True)
class ChatMessage:
    """One entry of the visible transcript.

    Attributes:
        role: "user" or "model".
        text: Message text.
    """

    role: str
    text: str


GREETING = (
    "Hi! I am AirGuard. I can analyze your local air, or check the air "
    "quality in ANY city worldwide. Just ask!"
)
PENDING_TEXT = "I'm taking a moment to calculate that..."
CONNECTION_ERROR_TEXT = "Sorry, I'm having trouble connecting right now."

SUGGESTIONS = (
    "How is the air here?",
    "Check air in Tokyo",
    "How to reduce smog?",
)

CITY_TOOL_NAME = "getCityAirQuality"

CITY_AIR_QUALITY_TOOL = {
    "name": CITY_TOOL_NAME,
    "description": (
        "Get the real-time Air Quality Index (AQI) and pollutant data for a "
        "specific city name anywhere in the world."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "cityName": {
                "type": "string",
                "description": "The name of the city to search for (e.g., 'Tokyo', 'New York', 'Mumbai').",
            }
        },
        "required": ["cityName"],
    },
}


_SYSTEM_PROMPT = """\
You are AirGuard, an expert environmental and air quality assistant.

Your Mission:
1. **Analyze Live Context**: Use the provided location and air quality data.
2. **Global Knowledge**: If a user asks about a specific city, ALWAYS call the available tool 'getCityAirQuality' to get real data. Do not guess.
3. **Educate & Empower**: Teach users how to improve their environment.
4. **Tone**: Friendly, scientific but accessible, and proactive. Use emojis."""


def build_context(
    location_name: str,
    latitude: float,
    longitude: float,
    reading: AirQualityReading,
    timestamp: datetime | None = None,
) -> dict:
    """Assemble the dashboard snapshot that is embedded in the system prompt."""
    timestamp = timestamp or datetime.now()
    return {
        "locationName": location_name,
        "coordinates": {"latitude": latitude, "longitude": longitude},
        "airQuality": asdict(reading),
        "timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%S"),
    }


def build_system_prompt(context: dict | None = None) -> str:
    """Return the persona prompt, with the user context appended if given."""
    system = _SYSTEM_PROMPT
    if context:
        system += (
            "\n\n=== CURRENT USER CONTEXT ===\n"
            f"{json.dumps(context, indent=2, default=str)}\n"
            "Use this data to answer questions about the user's CURRENT location."
        )
    return system


def _not_found(error: str) -> dict:
    return {"result": {"found": False, "error": error}}


def resolve_city_air_quality(args: dict | None) -> dict:
    """Run the getCityAirQuality tool: geocode the city, then fetch its AQI.

    Args:
        args: Tool input from the model, expected to hold "cityName".

    Returns:
        A JSON-serializable payload of the form
        {"result": {"found": bool, ...}}.
    """
    city_name = (args or {}).get("cityName")
    if not isinstance(city_name, str) or not city_name.strip():
        logger.warning("Function call missing cityName argument: {}", args)
        return _not_found(
            "City name parameter was missing. Please ask the user to specify the city name clearly."
        )

    coords = get_coordinates_for_city(city_name)
    if coords is None:
        return _not_found(f"City '{city_name}' not found. Ask the user for a valid city name.")

    try:
        report = fetch_air_quality(coords.latitude, coords.longitude)
    except AirQualityAPIError as exc:
        logger.error("Air quality lookup for {!r} failed: {}", city_name, exc)
        return _not_found(
            f"Could not fetch air quality for '{city_name}' right now. Tell the user to try again later."
        )

    return {
        "result": {
            "found": True,
            "city": coords.display_name,
            "data": reading_to_dict(report.current),
        }
    }


ToolHandler = Callable[[dict], dict]

DEFAULT_TOOL_HANDLERS: dict[str, ToolHandler] = {
    CITY_TOOL_NAME: resolve_city_air_quality,
}


def _extract_text(response) -> str:
    """Join the text blocks of a Claude response."""
    parts = [block.text for block in response.content if block.type == "text" and block.text]
    return "\n".join(parts).strip()


class ChatSession:
    """A multi-turn chat with Claude that can call back into the AQI service.

    Holds two parallel records: the visible transcript (``messages``) and
    the API message history, which also carries tool_use / tool_result
    blocks. When the dashboard context changes the caller swaps it in with
    ``update_context``, which restarts the API history but keeps the
    transcript.
    """

    def __init__(
        self,
        context: dict | None = None,
        tools: list[dict] | None = None,
        client: anthropic.Anthropic | None = None,
        tool_handlers: dict[str, ToolHandler] | None = None,
        max_tool_rounds: int | None = None,
    ):
        if client is None:
            api_key = config.get_anthropic_api_key()
            if not api_key:
                raise ChatError(
                    "ANTHROPIC_API_KEY is not set. "
                    "Please set it in your environment to use the chat feature."
                )
            client = anthropic.Anthropic(api_key=api_key)

        self.context = context
        self.system = build_system_prompt(context)
        self.tools = [CITY_AIR_QUALITY_TOOL] if tools is None else list(tools)
        self.max_tool_rounds = (
            config.CHAT_MAX_TOOL_ROUNDS if max_tool_rounds is None else max_tool_rounds
        )
        self._client = client
        self._handlers = dict(DEFAULT_TOOL_HANDLERS if tool_handlers is None else tool_handlers)
        self._history: list[dict] = []
        self._messages: list[ChatMessage] = [ChatMessage("model", GREETING)]
        self._loading = False

    @property
    def messages(self) -> list[ChatMessage]:
        """The visible transcript, oldest first."""
        return list(self._messages)

    @property
    def history(self) -> list[dict]:
        """The API message history (user, assistant and tool turns)."""
        return list(self._history)

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def show_suggestions(self) -> bool:
        """Quick suggestions are offered until the conversation gets going."""
        return len(self._messages) < 3 and not self._loading

    def update_context(self, context: dict | None) -> None:
        """Point the session at new dashboard data.

        The API history restarts under the new system prompt; the visible
        transcript is kept.
        """
        self.context = context
        self.system = build_system_prompt(context)
        self._history = []

    def _create(self):
        kwargs = {
            "model": config.ANTHROPIC_MODEL,
            "max_tokens": config.CHAT_MAX_TOKENS,
            "system": self.system,
            "messages": self._history,
        }
        if self.tools:
            kwargs["tools"] = self.tools
        return self._client.messages.create(**kwargs)

    def _run_tool(self, block) -> dict:
        """Execute one tool_use block and wrap the outcome as a tool_result."""
        handler = self._handlers.get(block.name)
        if handler is None:
            logger.warning("Model requested unknown tool {!r}", block.name)
            payload = _not_found(f"Unknown tool '{block.name}'.")
            return {
                "type": "tool_result",
                "tool_use_id": block.id,
                "content": json.dumps(payload),
                "is_error": True,
            }

        logger.info("Tool call {} args={}", block.name, block.input)
        payload = handler(block.input or {})
        return {
            "type": "tool_result",
            "tool_use_id": block.id,
            "content": json.dumps(payload, default=str),
        }

    def _run_turn(self) -> str:
        """Call Claude, resolving tool calls until it answers in text."""
        response = self._create()
        rounds = 0
        while response.stop_reason == "tool_use":
            if rounds >= self.max_tool_rounds:
                logger.warning("Stopping after {} tool rounds", rounds)
                break
            rounds += 1

            calls = [block for block in response.content if block.type == "tool_use"]
            self._history.append({"role": "assistant", "content": response.content})
            self._history.append(
                {"role": "user", "content": [self._run_tool(call) for call in calls]}
            )
            response = self._create()

        text = _extract_text(response) or PENDING_TEXT
        # Only text goes into history so no tool_use is left unanswered
        self._history.append({"role": "assistant", "content": text})
        return text

    def send_message(self, text: str) -> ChatMessage:
        """Send a user message and return the model's reply.

        The reply is also appended to ``messages``. Failures during the
        turn (API errors or a failing tool handler) do not raise: they
        produce an apology message and the history is rolled back so the
        session stays usable.

        Raises:
            ValueError: If the text is blank.
            ChatBusyError: If a previous message is still being processed.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Cannot send an empty message.")
        if self._loading:
            raise ChatBusyError("Still waiting for the previous reply.")

        self._loading = True
        self._messages.append(ChatMessage("user", text))
        checkpoint = len(self._history)
        self._history.append({"role": "user", "content": text})

        try:
            reply_text = self._run_turn()
        except anthropic.APIError as exc:
            logger.error("Chat Error: {}", exc)
            del self._history[checkpoint:]
            reply_text = CONNECTION_ERROR_TEXT
        except Exception:
            logger.exception("Chat turn failed")
            del self._history[checkpoint:]
            reply_text = CONNECTION_ERROR_TEXT
        finally:
            self._loading = False

        reply = ChatMessage("model", reply_text)
        self._messages.append(reply)
        return reply


def create_chat_session(context: dict | None = None, tools: list[dict] | None = None) -> ChatSession:
    """Create a chat session with the default city lookup tool."""
    return ChatSession(context=context, tools=tools)
