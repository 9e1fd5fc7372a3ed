"""
Claude API client for Labwise.

Extracts structured records (currently free-text patient presentations)
through a forced tool call, and caches each extraction on disk so repeated
intake of the same description does not hit the API again.
"""

from __future__ import annotations

import hashlib
import json
import os
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from anthropic import Anthropic
from pydantic import BaseModel

from labwise.utils import LLMError, get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_CACHE_DIR = Path.home() / ".labwise" / "llm-cache"


def _tool_name(schema: type[BaseModel]) -> str:
    return f"record_{schema.__name__.lower()}"


class LLMClient:
    """
    Structured extraction with Claude.

    Every request forces a single tool whose input schema is the target
    Pydantic model, so the reply is always validated model data or an error.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        cache_dir: Path | None = None,
        enable_cache: bool = True,
    ):
        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise LLMError("ANTHROPIC_API_KEY is not set; LLM intake is unavailable")

        self.client = Anthropic(api_key=api_key)
        self.model = model
        self.cache_dir = cache_dir or DEFAULT_CACHE_DIR
        self.enable_cache = enable_cache

        if self.enable_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _cache_path(self, system: str, prompt: str, schema: type[BaseModel]) -> Path:
        fingerprint = json.dumps({
            "model": self.model,
            "system": system,
            "prompt": prompt,
            "schema": schema.model_json_schema(),
        }, sort_keys=True)
        digest = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"{schema.__name__}-{digest}.json"

    def _read_cache(self, path: Path, schema: type[T]) -> T | None:
        if not self.enable_cache or not path.exists():
            return None
        envelope = json.loads(path.read_text(encoding="utf-8"))
        logger.debug("LLM cache hit: %s", path.name)
        return schema.model_validate(envelope["record"])

    def _write_cache(self, path: Path, record: dict) -> None:
        if not self.enable_cache:
            return
        envelope = {
            "model": self.model,
            "created_at": datetime.now().isoformat(),
            "record": record,
        }
        path.write_text(json.dumps(envelope, ensure_ascii=False), encoding="utf-8")

    def clear_cache(self) -> int:
        """Delete every cached extraction. Returns the number of files removed."""
        if not self.cache_dir.exists():
            return 0
        removed = list(self.cache_dir.glob("*.json"))
        for path in removed:
            path.unlink()
        return len(removed)

    # -------------------------------------------------------------------------
    # Extraction
    # -------------------------------------------------------------------------

    def generate_structured(
        self,
        prompt: str,
        schema: type[T],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        use_cache: bool = True,
    ) -> T:
        """
        Extract one ``schema`` record from the model's reply to ``prompt``.

        Raises:
            LLMError: the reply contained no call to the extraction tool
        """
        system = system or "Use the provided tool to record your answer."
        cache_path = self._cache_path(system, prompt, schema)

        if use_cache:
            cached = self._read_cache(cache_path, schema)
            if cached is not None:
                return cached

        tool_name = _tool_name(schema)
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            tools=[{
                "name": tool_name,
                "description": f"Record the extracted {schema.__name__}",
                "input_schema": schema.model_json_schema(),
            }],
            tool_choice={"type": "tool", "name": tool_name},
            temperature=temperature,
        )

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                record = schema.model_validate(block.input)
                if use_cache:
                    self._write_cache(cache_path, record.model_dump(mode="json"))
                return record

        raise LLMError(
            f"Model reply contained no {tool_name} call",
            details={"model": self.model, "stop_reason": getattr(response, "stop_reason", None)},
        )


# Shared client, created on first use
_client: LLMClient | None = None


def get_client() -> LLMClient:
    """Get the shared client, creating it from the environment if needed."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client


def set_client(client: LLMClient | None) -> None:
    """Replace the shared client; ``None`` forgets it."""
    global _client
    _client = client
