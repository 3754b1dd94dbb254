"""
Coaching model client.

The stage engine never imports this module. session.py calls it only after
the engine has committed a decision, asking the model to rephrase the
engine's message as a conversational coaching reply.

- LLMClient: one chat-completion call per ask, transient API errors retried
- ConversationManager: running coaching history, trimmed to a token budget
- Every call can be appended to a JSONL file for later review
"""

import functools
import json
import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, TypeVar

import tiktoken
from openai import APIConnectionError, InternalServerError, OpenAI, RateLimitError

from config import LLMConfig
from logging_utils import get_logger

logger = get_logger(__name__)

R = TypeVar("R")

# APITimeoutError subclasses APIConnectionError
TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


def retry_transient(
    attempts: int = 3,
    first_delay: float = 1.0,
    ceiling: float = 30.0,
    retry_on: tuple = TRANSIENT_ERRORS,
):
    """
    Retry a call on transient errors, doubling the wait each time.

    Errors outside retry_on propagate at once. After the last attempt the
    final error propagates.

    Usage:
        @retry_transient(attempts=3)
        def call_model():
            ...
    """
    def decorator(func: Callable[..., R]) -> Callable[..., R]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> R:
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt == attempts:
                        raise
                    wait = min(first_delay * 2 ** (attempt - 1), ceiling)
                    logger.warning(
                        "%s on attempt %d/%d, retrying in %.1fs",
                        e.__class__.__name__, attempt, attempts, wait,
                    )
                    time.sleep(wait)
            raise ValueError(f"attempts must be at least 1, got {attempts}")

        return wrapper
    return decorator


@dataclass(frozen=True)
class Completion:
    """Text of one model reply plus its token usage."""
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class UsageStats:
    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0

    def add(self, completion: Completion) -> None:
        self.calls += 1
        self.prompt_tokens += completion.prompt_tokens
        self.completion_tokens += completion.completion_tokens


@functools.lru_cache(maxsize=None)
def _encoding() -> "tiktoken.Encoding":
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Token count under the cl100k_base encoding."""
    return len(_encoding().encode(text))


def count_message_tokens(messages: list[dict[str, str]]) -> int:
    return sum(count_tokens(m["content"]) for m in messages)


class LLMClient:
    """
    Chat-completion client for the coaching model.

    Usage:
        client = LLMClient(LLMConfig.from_env())
        reply = client.ask("Suggest an essential question about water.")
    """

    def __init__(self, config: LLMConfig, log_path: str | None = None):
        """
        Args:
            config: Endpoint, model and temperature.
            log_path: Optional JSONL file receiving one record per call.
        """
        self.config = config
        self.log_path = log_path
        self.usage = UsageStats()
        self._client = OpenAI(base_url=config.base_url)

    def ask(self, prompt: str) -> str:
        return self.complete([{"role": "user", "content": prompt}]).content

    def complete(self, messages: list[dict[str, str]]) -> Completion:
        """
        Send messages and return the reply.

        Usage figures come from the API when it reports them and are counted
        locally with tiktoken otherwise.
        """
        raw = self._create(messages)
        content = raw.choices[0].message.content or ""

        if raw.usage is not None:
            completion = Completion(content, raw.usage.prompt_tokens, raw.usage.completion_tokens)
        else:
            completion = Completion(content, count_message_tokens(messages), count_tokens(content))

        self.usage.add(completion)
        logger.debug(
            "Coaching reply: %d prompt + %d completion tokens",
            completion.prompt_tokens, completion.completion_tokens,
        )
        if self.log_path:
            self._append_record(messages, completion)
        return completion

    @retry_transient()
    def _create(self, messages: list[dict[str, str]]):
        return self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
            stream=False,
        )

    def _append_record(self, messages: list[dict[str, str]], completion: Completion) -> None:
        directory = os.path.dirname(self.log_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        record = {
            "at": datetime.now().isoformat(),
            "model": self.config.model,
            "messages": messages,
            "reply": completion.content,
            "usage": {
                "prompt": completion.prompt_tokens,
                "completion": completion.completion_tokens,
            },
        }
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")


class ConversationManager:
    """
    Running coaching conversation.

    The system prompt is always sent. When token_budget is set, the oldest
    user/assistant exchanges are dropped until the history fits, but the
    newest question is always kept.

    Usage:
        conv = ConversationManager(client, system_prompt=COACH_SYSTEM_PROMPT)
        first = conv.ask("...")
        second = conv.ask("...")  # sees the first exchange
    """

    def __init__(
        self,
        client: LLMClient,
        system_prompt: str | None = None,
        token_budget: int | None = None,
    ):
        self.client = client
        self.token_budget = token_budget
        self.history: list[dict[str, str]] = []
        if system_prompt:
            self.history.append({"role": "system", "content": system_prompt})

    def ask(self, question: str) -> str:
        self.history.append({"role": "user", "content": question})
        self._trim()
        reply = self.client.complete(list(self.history)).content
        self.history.append({"role": "assistant", "content": reply})
        return reply

    def reset(self) -> None:
        """Forget every exchange; the system prompt stays."""
        self.history = [m for m in self.history if m["role"] == "system"]

    def _trim(self) -> None:
        if self.token_budget is None:
            return

        system = [m for m in self.history if m["role"] == "system"]
        turns = [m for m in self.history if m["role"] != "system"]
        dropped = 0
        while len(turns) > 1 and count_message_tokens(system + turns) > self.token_budget:
            turns.pop(0)
            dropped += 1

        if dropped:
            logger.debug("Dropped %d old coaching messages to fit %d tokens", dropped, self.token_budget)
            self.history = system + turns
