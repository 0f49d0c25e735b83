# infrastructure/llm/ollama_client.py
from __future__ import annotations
import logging
from typing import Any, Dict
import requests
from domain.errors import ClassificationError

logger = logging.getLogger(__name__)


class OllamaChatClient:
    """
    Cliente mínimo de la API /api/chat de Ollama.
    Una petición por llamada, sin streaming ni historial.
    """

    def __init__(self, *, base_url: str = "http://localhost:11434", model: str = "llama3", timeout: float = 60) -> None:
        self.base = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def _post(self, url: str, json: Dict[str, Any]) -> Dict[str, Any]:
        r = requests.post(url, json=json, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def complete(self, prompt: str) -> str:
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }
        try:
            data = self._post(f"{self.base}/api/chat", json=body)
            content = data["message"]["content"]
        except requests.Timeout as exc:
            raise ClassificationError(f"Categorization timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise ClassificationError(f"Categorization request failed: {type(exc).__name__}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise ClassificationError("Malformed categorization response") from exc
        if not isinstance(content, str):
            raise ClassificationError("Malformed categorization response")
        logger.debug("Ollama (%s) respondió: %r", self.model, content[:80])
        return content
