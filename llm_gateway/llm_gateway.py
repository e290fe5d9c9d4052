from __future__ import annotations  # LLM request gateway module

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config.llm import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup

PROMPTS_DIR = Path(__file__).resolve().parents[1]


_MODEL_LOCKS: Dict[str, threading.Lock] = {}
_MODEL_LOCKS_GUARD = threading.Lock()


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


T = TypeVar("T", bound=BaseModel)


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _MODEL_LOCKS_GUARD:
        lock = _MODEL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _MODEL_LOCKS[key] = lock
    return lock


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Send one chat request on ``cfg`` and validate the reply against ``schema``.

    Exactly one attempt is made; callers own any fallback.

    Raises:
        LlmGatewayError: On transport failure, an error status, a non-JSON body
            or a reply that does not validate.
    """

    if cfg.sequential:
        with _lock_for(cfg):
            return _send_once(messages, schema, cfg, client, options)
    return _send_once(messages, schema, cfg, client, options)


def _send_once(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    cfg: LlmRoute,
    client: Optional[HttpClient],
    options: Optional[Dict[str, Any]],
) -> T:
    request_messages = _with_schema_prompt(_normalize_messages(messages), schema, cfg.enforce_json)
    preview = _preview(request_messages)
    if len(preview) > 120:
        preview = preview[:117] + "..."
    logger.info("LLM request start route=%s model=%s preview=%s", cfg.name, cfg.model, preview)

    url = f"{cfg.base_url}{cfg.endpoint}"
    try:
        response, close_cb = _post(url, _payload(cfg, request_messages, options), _headers(cfg), cfg.timeout_s, client)
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc
    try:
        if response.status_code >= 400:
            logger.error("LLM error status route=%s: %s", cfg.name, response.status_code)
            raise LlmGatewayError(f"LLM returned status {response.status_code}")
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise LlmGatewayError("LLM payload was not JSON") from exc
        try:
            parsed = _validate(schema, _extract_content(data))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("LLM output validation failed route=%s: %s", cfg.name, exc)
            raise LlmGatewayError("LLM output validation failed") from exc
    finally:
        _close_safely(close_cb)
    logger.info("LLM request done route=%s model=%s", cfg.name, cfg.model)
    return parsed


def _with_schema_prompt(messages: list[Dict[str, str]], schema: Type[BaseModel], enforce_json: bool) -> list[Dict[str, str]]:
    if not enforce_json:
        return messages
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    system = {"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json}
    return [system, *messages]


def _payload(cfg: LlmRoute, messages: list[Dict[str, str]], options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": messages, "stream": False}
    if cfg.temperature is not None:
        payload["temperature"] = cfg.temperature
    if cfg.max_tokens is not None:
        payload["max_tokens"] = cfg.max_tokens
    if options:
        payload.update(options)
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    return payload


def _headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    return headers


def model_fn(
    route: LlmRoute,
    schema: Type[T],
    *,
    client: Optional[HttpClient] = None,
) -> Callable[..., Dict[str, Any]]:  # Adapt a route into a registry-compatible callable
    def _invoke(*, system_prompt_path: str, inputs: Dict[str, Any], **options: Any) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": _load_prompt(system_prompt_path)},
            {"role": "user", "content": json.dumps(inputs, ensure_ascii=False)},
        ]
        parsed = chat(messages, schema, cfg=route, client=client, options=options or None)
        return parsed.model_dump()

    return _invoke


def _load_prompt(path: str) -> str:  # Read a system prompt relative to the project root
    prompt_path = Path(path)
    if not prompt_path.is_absolute():
        prompt_path = PROMPTS_DIR / prompt_path
    try:
        return prompt_path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise LlmGatewayError(f"Prompt not readable: {path}") from exc


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, timeout=timeout)
        return response, None
    import httpx

    http_client = httpx.Client(timeout=timeout)
    response = http_client.post(url, json=payload, headers=headers)
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in messages:
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _validate(schema: Type[T], content: str) -> T:  # Parse JSON content with schema
    cleaned = _strip_code_fences(content)
    try:
        return schema.model_validate_json(cleaned)
    except (json.JSONDecodeError, ValidationError) as exc:
        adapter = getattr(schema, "from_raw_content", None)
        if callable(adapter):
            try:
                return adapter(cleaned)  # type: ignore[return-value]
            except (ValueError, ValidationError):
                pass
        raise exc


def _strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text
