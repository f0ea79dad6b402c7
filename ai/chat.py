# ai/chat.py

import logging
from typing import List

from ai import gemini
from core.errors import ProviderError
from core.models import ChatMessage

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I had trouble connecting. Please try again!"


class ChatSession:
    """
    One conversation with the assistant about a destination.
    Messages are only ever appended; nothing is persisted.
    """

    def __init__(self, destination: str, country: str):
        self.destination = destination
        self.country = country
        self.messages: List[ChatMessage] = [
            ChatMessage(
                role="assistant",
                content=(
                    f"Hi! I'm WanderAI 🌍 Ask me anything about **{destination}, {country}**: "
                    "the best places to visit, local food, hidden gems or travel tips!"
                ),
            )
        ]

    def send(self, text: str) -> str | None:
        """Add a user turn and the assistant's answer. Returns the answer, None for blank input."""
        text = text.strip()
        if not text:
            return None

        self.messages.append(ChatMessage(role="user", content=text))
        try:
            reply = gemini.chat_with_ai(self.messages, self.destination, self.country)
        except ProviderError as exc:
            logger.warning("Chat turn failed for %s: %s", self.destination, exc)
            reply = FALLBACK_REPLY
        self.messages.append(ChatMessage(role="assistant", content=reply))
        return reply
