"""
Ollama REST API client.
Wraps POST /api/generate in JSON mode for column analysis, with retry logic.
"""
import json
import logging
import time
from typing import Optional
import httpx

from config import settings

logger = logging.getLogger(__name__)


class OllamaClient:
    """Thin client for the Ollama local LLM server."""

    def __init__(self, host: Optional[str] = None, model: Optional[str] = None):
        self.host = (host or settings.OLLAMA_HOST).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = settings.OLLAMA_TIMEOUT_SECONDS

    def is_healthy(self) -> tuple[bool, Optional[str]]:
        """Returns (True, model_name) if Ollama is reachable, (False, error) otherwise."""
        try:
            resp = httpx.get(f"{self.host}/api/version", timeout=5)
            resp.raise_for_status()
            return True, self.model
        except httpx.HTTPError as e:
            return False, str(e)

    def generate_json(self, prompt: str, max_retries: int = 3) -> dict:
        """
        Call Ollama /api/generate with format=json and return the decoded object.
        Retries up to max_retries times on transport errors or undecodable output.
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {
                "num_ctx": 4096,
                "temperature": 0.2,
            },
        }
        last_err: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            try:
                logger.debug("Ollama generate attempt %d", attempt)
                resp = httpx.post(
                    f"{self.host}/api/generate",
                    json=payload,
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                body = resp.json()
                if not isinstance(body, dict):
                    raise ValueError(f"unexpected Ollama body: {type(body).__name__}")
                text = str(body.get("response", "")).strip()
                if not text:
                    raise ValueError("empty response from Ollama")
                return json.loads(text)
            except (httpx.HTTPError, ValueError) as e:
                last_err = e
                logger.warning("Ollama attempt %d/%d failed: %s", attempt, max_retries, e)
                if attempt < max_retries:
                    time.sleep(2 ** attempt)  # exponential back-off: 2s, 4s
        raise RuntimeError(f"Ollama failed after {max_retries} attempts: {last_err}")
