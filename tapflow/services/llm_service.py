import json
import logging
import re

import openai
from tenacity import retry, stop_after_attempt, wait_exponential

from tapflow.core.config import settings
from tapflow.models.ai_usage import AIUsageLog

logger = logging.getLogger(__name__)

# Rough per-1M token prices used for usage logging
PRICE_PER_1M_INPUT = 0.15
PRICE_PER_1M_OUTPUT = 0.60

JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class LLMUnavailable(Exception):
    """Raised when no model is configured."""


def estimate_tokens(text: str) -> int:
    # ~4 characters per token
    return len(text) // 4 if text else 0


def estimate_cost(input_tokens: int, output_tokens: int) -> float:
    return round(
        (input_tokens / 1_000_000 * PRICE_PER_1M_INPUT)
        + (output_tokens / 1_000_000 * PRICE_PER_1M_OUTPUT),
        6,
    )


def extract_json(text: str) -> dict:
    """Pulls the first {...} block out of a model reply."""
    match = JSON_BLOCK.search(text or "")
    if not match:
        raise ValueError("No JSON found in model response")
    return json.loads(match.group(0))


class LLMService:
    def __init__(self):
        self.api_key = settings.LLM_API_KEY
        self.base_url = settings.LLM_BASE_URL
        self.model = settings.LLM_MODEL
        self.client = None

        if self.api_key:
            self.client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url  # None = api.openai.com
            )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=4, max=10), reraise=True)
    def complete(self, prompt: str, max_tokens: int = 500) -> str:
        """Single-turn completion. Raises LLMUnavailable when no key is set."""
        if not self.enabled:
            raise LLMUnavailable("LLM_API_KEY is not set")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.4,
            max_tokens=max_tokens,
            stream=False
        )
        return (response.choices[0].message.content or "").strip()


def log_ai_usage(db, task_type: str, model_name: str, prompt: str, output: str,
                 prospect_id: int = None, status: str = "success"):
    """Adds an ai_usage_logs row to the caller's session."""
    input_tokens = estimate_tokens(prompt)
    output_tokens = estimate_tokens(output)

    db.add(AIUsageLog(
        task_type=task_type,
        model_name=model_name,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        estimated_cost=estimate_cost(input_tokens, output_tokens),
        related_prospect_id=prospect_id,
        status=status,
    ))
