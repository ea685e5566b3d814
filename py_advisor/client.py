import logging
from typing import Dict, List, Optional

import requests

from .types import AISettings, ChatReply, AdvisorError, REASONER_MODEL

# The reasoner model is tuned for temperature 1.0
REASONER_TEMPERATURE = 1.0

class ChatClient:
    """ OpenAI-compatible chat-completions call, one request per question. """

    def __init__(self, settings: AISettings, timeout: float = 120.0, session: Optional[requests.Session] = None):
        self.settings = settings
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_payload(self, messages: List[Dict[str, str]]) -> Dict:
        if self.settings.use_deep_thinking:
            model = REASONER_MODEL
            temperature = REASONER_TEMPERATURE
        else:
            model = self.settings.model
            temperature = self.settings.temperature
        return {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }

    def chat(self, messages: List[Dict[str, str]]) -> ChatReply:
        if not self.settings.api_key:
            raise AdvisorError("Please configure an API key in the AI settings first")

        url = f"{self.settings.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }
        payload = self.build_payload(messages)

        try:
            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AdvisorError(f"Request to {url} failed: {e}")

        if not response.ok:
            raise AdvisorError(self._error_message(response))

        try:
            data = response.json()
            message = data["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AdvisorError(f"Unexpected chat response: {e}")

        logging.info(f"Chat reply received from {payload['model']}")
        return ChatReply(
            content=message.get("content") or "",
            reasoning_content=message.get("reasoning_content") or None,
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
            message = (body.get("error") or {}).get("message")
            if message:
                return message
        except (ValueError, AttributeError):
            pass
        return f"Request failed: {response.status_code}"
