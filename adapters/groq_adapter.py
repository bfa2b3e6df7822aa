"""Groq adapter for LLM chat completions (meal plan generation).
"""

from typing import Dict, List, Optional
import logging

import groq
from groq import Groq

from app.exceptions import ExternalServiceError, RequestTimeoutError, NutriFlowError

logger = logging.getLogger("nutriflow.groq")

_client: Optional[Groq] = None
_model: Optional[str] = None


def connect(api_key: Optional[str], model: str, timeout: float = 30.0):
    global _client, _model
    if not api_key:
        _client = None
        logger.warning("GROQ_API_KEY not set; AI generation is disabled")
        return
    try:
        _client = Groq(api_key=api_key, timeout=timeout)
        _model = model
        logger.info("Groq client configured (model=%s)", model)
    except Exception as exc:
        _client = None
        logger.warning("Could not initialize Groq client: %s", exc)


def close():
    global _client
    try:
        if _client is not None:
            _client.close()
            logger.info("Groq client closed")
    except Exception:
        logger.exception("Error closing Groq client")
    finally:
        _client = None


def is_configured() -> bool:
    return _client is not None


def complete(
    messages: List[Dict[str, str]],
    temperature: float = 0.7,
    max_tokens: int = 2000,
) -> str:
    """Run a chat completion and return the text of the first choice.

    Raises:
        ExternalServiceError: client missing, upstream rate limit or connection failure
        RequestTimeoutError: upstream timeout
        NutriFlowError: any other upstream API error
    """
    if _client is None:
        raise ExternalServiceError("Service de génération IA indisponible")
    try:
        completion = _client.chat.completions.create(
            model=_model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except groq.RateLimitError as exc:
        logger.warning("Groq rate limit hit: %s", exc)
        raise ExternalServiceError(
            "Service temporairement indisponible. Veuillez réessayer plus tard."
        ) from exc
    except groq.APITimeoutError as exc:
        logger.warning("Groq request timed out: %s", exc)
        raise RequestTimeoutError(
            "La génération a pris trop de temps. Veuillez réduire la durée du plan."
        ) from exc
    except groq.APIConnectionError as exc:
        logger.error("Groq connection failed: %s", exc)
        raise ExternalServiceError(
            "Service temporairement indisponible. Veuillez réessayer plus tard."
        ) from exc
    except groq.APIError as exc:
        logger.error("Groq API error: %s", exc)
        raise NutriFlowError(
            "Une erreur s'est produite lors de la génération du plan alimentaire"
        ) from exc
    if not completion.choices:
        return ""
    return completion.choices[0].message.content or ""
