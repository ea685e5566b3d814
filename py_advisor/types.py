from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_MODEL = "deepseek-chat"
REASONER_MODEL = "deepseek-reasoner"

@dataclass
class AISettings:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    use_deep_thinking: bool = False
    enable_web_search: bool = True

@dataclass
class Message:
    role: str  # user / assistant / system
    content: str
    reasoning_content: Optional[str] = None

@dataclass
class Conversation:
    id: str
    title: str
    messages: List[Message] = field(default_factory=list)
    updated_at: float = 0.0  # epoch seconds

@dataclass
class ChatReply:
    content: str
    reasoning_content: Optional[str] = None

class AdvisorError(Exception):
    pass
