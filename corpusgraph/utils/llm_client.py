"""LLM client creation factory.

Centralizes API key, base URL and timeout resolution for the enrichment client.
"""

import os
from typing import Any, Optional

from loguru import logger
from openai import OpenAI


def create_openai_client(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> OpenAI:
    """Create and configure an OpenAI client.

    Retries default to 0: enrichment is a single best-effort call per document.

    Args:
        api_key: The API key. If None, falls back to OPENAI_API_KEY.
        base_url: The base URL. If None, falls back to OPENAI_BASE_URL.
        timeout: Request timeout in seconds.
        **kwargs: Additional arguments to pass to the OpenAI constructor.
    """
    final_api_key = api_key or os.getenv("OPENAI_API_KEY")
    final_base_url = base_url or os.getenv("OPENAI_BASE_URL")

    masked_key = (
        f"{final_api_key[:4]}...{final_api_key[-4:]}"
        if final_api_key and len(final_api_key) > 8
        else "None"
    )
    logger.debug(
        f"Creating OpenAI client: base_url={final_base_url}, "
        f"api_key={masked_key}, timeout={timeout}"
    )

    return OpenAI(
        api_key=final_api_key,
        base_url=final_base_url,
        timeout=timeout,
        max_retries=kwargs.pop("max_retries", 0),
        **kwargs,
    )
