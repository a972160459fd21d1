"""
Generative model: OpenAI (primary) or Hugging Face (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses HF router.
Transport and HTTP errors raise GenerationFailure; "no text" is returned as "".
"""

import logging

import httpx
from openai import OpenAI, OpenAIError

from app.core.config import (
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    GENERATION_TOP_P,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from app.core.errors import GenerationFailure, ServiceUnavailableError

logger = logging.getLogger(__name__)


def _call_openai(prompt: str, temperature: float, top_p: float, max_tokens: int) -> str:
    """Call OpenAI chat completions. Returns generated text."""
    client = OpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT)
    try:
        response = client.chat.completions.create(
            model=OPENAI_LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            top_p=top_p,
            max_tokens=max_tokens,
        )
    except OpenAIError as e:
        raise GenerationFailure(f"OpenAI request failed: {e}") from e
    msg = response.choices[0].message if response.choices else None
    if not msg or not getattr(msg, "content", None):
        return ""
    out = (msg.content or "").strip()
    logger.info("[llm:openai] OUT response_len=%d", len(out))
    return out


def _call_hf(prompt: str, temperature: float, top_p: float, max_tokens: int) -> str:
    """Call Hugging Face router chat completions. Returns generated text."""
    if not HF_API_KEY:
        raise ServiceUnavailableError("Set OPENAI_API_KEY or HF_API_KEY to enable text generation")
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": temperature,
        "top_p": top_p,
        "max_tokens": max_tokens,
    }
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(HF_CHAT_URL, json=payload, headers=headers)
        if response.status_code != 200:
            raise GenerationFailure(f"HF LLM error {response.status_code}: {response.text[:200]}")
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise GenerationFailure(f"HF LLM request failed: {e}") from e
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        msg = choices[0].get("message") or {}
        out = (msg.get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d", len(out))
        return out
    return ""


def generate_text(
    prompt: str,
    temperature: float = GENERATION_TEMPERATURE,
    top_p: float = GENERATION_TOP_P,
    max_tokens: int = GENERATION_MAX_TOKENS,
) -> str:
    """
    Call the LLM for text generation. Uses OpenAI when OPENAI_API_KEY is set, else Hugging Face.
    One provider, one call. Returns generated text, or "" when the model produced none.
    """
    logger.info("[llm] IN  prompt_len=%d max_tokens=%d temperature=%.2f", len(prompt), max_tokens, temperature)
    logger.debug("[llm] prompt_sample=%r", prompt[:500])
    if OPENAI_API_KEY:
        return _call_openai(prompt, temperature, top_p, max_tokens)
    return _call_hf(prompt, temperature, top_p, max_tokens)
