import json
import os
import time
import uuid
import logging
from dataclasses import asdict
from typing import List, Optional

from .types import Conversation, Message, AdvisorError
from .client import ChatClient

DEFAULT_TITLE = "New chat"
TITLE_LENGTH = 15


class ConversationStore:
    """ Chat history, newest conversation first, persisted to one JSON file. """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.conversations: List[Conversation] = []
        self.active_id: Optional[str] = None
        if path:
            self._load()

    def get(self, conversation_id: Optional[str]) -> Optional[Conversation]:
        for c in self.conversations:
            if c.id == conversation_id:
                return c
        return None

    @property
    def active(self) -> Optional[Conversation]:
        return self.get(self.active_id)

    def new_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        conv = Conversation(id=uuid.uuid4().hex, title=title, updated_at=time.time())
        self.conversations.insert(0, conv)
        self.active_id = conv.id
        self._save()
        return conv

    def switch(self, conversation_id: str) -> None:
        if self.get(conversation_id) is None:
            raise KeyError(f"Conversation {conversation_id} not found")
        self.active_id = conversation_id
        self._save()

    def delete(self, conversation_id: str) -> None:
        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.active_id == conversation_id:
            self.active_id = self.conversations[0].id if self.conversations else None
        self._save()

    def send(self, conversation_id: Optional[str], text: str, system_prompt: str, client: ChatClient) -> Optional[Message]:
        """
        Appends the user message, asks the model with the system prompt and the
        conversation history, and appends the reply. API failures become an
        assistant message starting with 'Error:' instead of an exception.
        """
        text = text.strip()
        if not text:
            return None

        conv = self.get(conversation_id) or self.new_conversation()
        history = [{"role": m.role, "content": m.content} for m in conv.messages]

        if not conv.messages and conv.title == DEFAULT_TITLE:
            conv.title = text[:TITLE_LENGTH] + ("..." if len(text) > TITLE_LENGTH else "")
        conv.messages.append(Message(role="user", content=text))
        conv.updated_at = time.time()

        api_messages = [{"role": "system", "content": system_prompt}] + history + [{"role": "user", "content": text}]
        try:
            reply = client.chat(api_messages)
            answer = Message(role="assistant", content=reply.content, reasoning_content=reply.reasoning_content)
        except AdvisorError as e:
            logging.warning(f"Chat request failed: {e}")
            answer = Message(role="assistant", content=f"Error: {e}")

        conv.messages.append(answer)
        conv.updated_at = time.time()
        self._save()
        return answer

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self.conversations = [
                Conversation(
                    id=c["id"],
                    title=c.get("title", DEFAULT_TITLE),
                    messages=[Message(**m) for m in c.get("messages", [])],
                    updated_at=c.get("updated_at", 0.0),
                )
                for c in data.get("conversations", [])
            ]
            self.active_id = data.get("active_id")
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logging.warning(f"Failed to load conversations {self.path}: {e}")
            self.conversations = []
            self.active_id = None

    def _save(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        data = {
            "active_id": self.active_id,
            "conversations": [asdict(c) for c in self.conversations],
        }
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)
