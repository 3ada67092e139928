"""
LLM client.

Two jobs: answering general (non order-status) questions from a short fixed
prompt, and wording the active-order status message for
/api/existing-order/status. Product-catalog context is not part of this
service.
"""

import json
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from models import SessionMetadata
from chat_logger import get_logger
from app_config import (
    LLM_PROVIDER,
    LLM_MODEL,
    LLM_API_KEY,
    LLM_API_BASE_URL,
    LLM_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
    ORDER_STATUS_MAX_TOKENS,
    SUPPORT_PHONE,
)

logger = get_logger("printo_cs")

_DEFAULT_URLS = {
    "openai": "https://api.openai.com/v1/chat/completions",
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
}


def build_system_prompt(metadata: Optional[SessionMetadata] = None,
                        current_date: Optional[str] = None) -> str:
    """Fixed assistant instructions plus whatever the session already knows."""
    current_date = current_date or datetime.now().strftime("%d/%m/%Y")
    prompt = (
        "You are Printo's customer support assistant on WhatsApp. "
        "Answer briefly (2-3 sentences) and politely. "
        "For order status, ask the customer for the 10-digit mobile number "
        "used when ordering. "
        f"If you cannot help, share the support number {SUPPORT_PHONE}. "
        f"Today's date: {current_date}."
    )
    if metadata is not None:
        if metadata.customer_name:
            prompt += f" Customer name: {metadata.customer_name}."
        if metadata.product_interest:
            prompt += f" Customer is interested in: {metadata.product_interest}."
        if metadata.requirements:
            details = ", ".join(f"{k}: {v}" for k, v in metadata.requirements.items())
            prompt += f" Known requirements: {details}."
        if metadata.questions_asked:
            earlier = "; ".join(metadata.questions_asked)
            prompt += f" Earlier questions: {earlier}."
    return prompt


ORDER_STATUS_PROMPT = (
    "You are a helpful customer service assistant for Printo, a printing company. "
    "Write a SHORT WhatsApp message (2-4 sentences) with the status of the "
    "customer's active orders.\n"
    "Rules:\n"
    "- Use *bold* for Order IDs and status\n"
    "- Include the promised date when one is given\n"
    "- No greetings, no sign-off\n"
    "- Say \"Order ID\", never \"Job ID\"\n"
    "- For several orders use a numbered list\n"
    "Example (one order): Your order *PJ123456* is currently in *Production* "
    "and will be ready by Jan 30th.\n"
    "Example (several): You have 2 active orders:\n"
    "1. *PJ123456* - *In Production* (ready by Jan 30th)\n"
    "2. *PJ123457* - *Ready for Dispatch*"
)


class LLMClient:
    """
    OpenAI-compatible chat completion client.

    Supported providers:
    - openai: OpenAI API
    - azure_openai: Azure OpenAI Service (LLM_API_BASE_URL required)
    - gemini: Gemini through its OpenAI-compatible endpoint
    """

    def __init__(self, provider: str = LLM_PROVIDER, model: str = LLM_MODEL,
                 api_key: str = LLM_API_KEY, api_url: str = LLM_API_BASE_URL):
        self.provider = provider.lower()
        if self.provider not in ("openai", "azure_openai", "gemini"):
            raise ValueError(f"Unsupported LLM provider: {self.provider}")
        self.model = model
        self.api_key = api_key
        self.api_url = api_url or _DEFAULT_URLS.get(self.provider, "")
        self.temperature = LLM_TEMPERATURE
        self.max_tokens = LLM_MAX_TOKENS
        self.timeout = LLM_TIMEOUT_SECONDS

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.provider == "azure_openai":
            headers["api-key"] = self.api_key
        else:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def chat_completion(self, messages: List[Dict[str, str]],
                        max_tokens: Optional[int] = None) -> Dict[str, Any]:
        """
        Send *messages* (system + history + question) and return
        {"content", "total_tokens", "model", "latency_ms"}.

        Raises:
            requests.exceptions.RequestException, KeyError: on API failure
        """
        start_time = time.time()
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        try:
            response = requests.post(
                self.api_url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (requests.exceptions.RequestException, KeyError, IndexError, ValueError) as e:
            logger.error(f"LLM API call failed | provider={self.provider} | error={e}")
            raise

        usage = data.get("usage", {})
        return {
            "content": (content or "").strip(),
            "total_tokens": usage.get("total_tokens", 0),
            "model": self.model,
            "latency_ms": int((time.time() - start_time) * 1000),
        }

    def answer(self, question: str, history: List[Dict[str, str]],
               metadata: Optional[SessionMetadata] = None) -> str:
        """Answer *question* given the trimmed conversation *history*."""
        messages = [{"role": "system", "content": build_system_prompt(metadata)}]
        messages.extend(history)
        messages.append({"role": "user", "content": question})
        result = self.chat_completion(messages)
        logger.info(
            f"LLM reply | model={result['model']} | tokens={result['total_tokens']} | "
            f"latency_ms={result['latency_ms']}"
        )
        return result["content"]

    def write_order_status(self, order_data: List[Dict[str, Any]]) -> str:
        """Word a status message for *order_data* (already mapped for display)."""
        messages = [
            {"role": "system", "content": ORDER_STATUS_PROMPT},
            {"role": "user", "content": json.dumps(order_data, indent=2)},
        ]
        result = self.chat_completion(messages, max_tokens=ORDER_STATUS_MAX_TOKENS)
        logger.info(
            f"LLM order status | orders={len(order_data)} | tokens={result['total_tokens']} | "
            f"latency_ms={result['latency_ms']}"
        )
        return result["content"]


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Build the LLM client on first use so a missing key only fails the LLM path."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
