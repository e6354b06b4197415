"""Thin client for an OpenAI-compatible chat-completions endpoint.

The conversation is sent as-is; building it is the reply lifecycle's job.
Failures surface as UpstreamError and are never retried here.
"""
from typing import List, Dict, Optional
import logging
import httpx

from ..core.config import ai_settings, AISettings
from ..core.errors import UpstreamError

log = logging.getLogger(__name__)


def _extract_content(data: dict) -> str:
    choice = (data.get('choices') or [{}])[0]
    msg = (choice.get('message') or {})
    content = msg.get('content')
    # Some providers may return a list of segments; join any text-like fields
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, dict):
                for k in ('text', 'content', 'value'):
                    v = part.get(k)
                    if isinstance(v, str) and v.strip():
                        parts.append(v.strip())
            elif isinstance(part, str) and part.strip():
                parts.append(part.strip())
        return "\n".join(parts).strip()
    if isinstance(content, str):
        return content.strip()
    ref = msg.get('refusal')
    if isinstance(ref, str) and ref.strip():
        return ref.strip()
    return ''


class AIClient:
    def __init__(self, settings: Optional[AISettings] = None, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or ai_settings()
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.settings.api_key}',
            'Content-Type': 'application/json',
        }

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send the conversation and return the assistant message text."""
        if not self.settings.api_key:
            raise UpstreamError('missing AI_API_KEY', service='ai')
        payload = {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
        }
        try:
            with httpx.Client(timeout=self.settings.timeout, transport=self._transport) as client:
                resp = client.post(self.settings.url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            log.error("AI completion request failed", extra={"error": type(e).__name__})
            raise UpstreamError(f"Failed to generate reply: {e}", service='ai') from e
        if resp.status_code >= 400:
            log.error("AI completion returned error status", extra={"status": resp.status_code})
            raise UpstreamError(f"Failed to generate reply: {resp.text[:300]}", service='ai')
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("Failed to generate reply: invalid JSON from AI service", service='ai') from e
        text = _extract_content(data)
        log.info("AI completion received", extra={"status": resp.status_code})
        return text


def get_ai_client() -> AIClient:
    return AIClient()
