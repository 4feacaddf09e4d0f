"""Free-text training commentary from a hosted language model.

The advisor reads a snapshot of recent metrics and returns a Markdown
report.  It never feeds back into training: :func:`request_advice`
turns every failure into a fixed fallback string so a broken or slow
service can't touch the training loop.

Usage::

    advisor = GeminiAdvisor(api_key=os.environ["GEMINI_API_KEY"])
    text = request_advice(advisor, window.recent(30))
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Protocol

import requests

from rlops.types import TrainingMetric

logger = logging.getLogger(__name__)

FALLBACK_ADVICE = (
    "Analysis service temporarily unavailable. Please check your connection."
)
EMPTY_ADVICE = "No analysis available."
ADVICE_WINDOW = 30

_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

_PROMPT_TEMPLATE = """\
As an RLOps Engineer, analyze the following DDPG training metrics and provide insights.
Metrics Data: {metrics}

Tasks:
1. Identify if Critic and Actor losses are converging.
2. Check if the average reward is increasing.
3. Suggest hyperparameter adjustments (learning rate, tau, noise).
4. Summarize training health.

Return the response as a clear Markdown report.
"""


class Advisor(Protocol):
    """Anything that can comment on a window of metrics."""

    def analyze(self, metrics: Sequence[TrainingMetric]) -> str: ...


def build_prompt(metrics: Sequence[TrainingMetric], window: int = ADVICE_WINDOW) -> str:
    """Render the analysis prompt for the last *window* metrics."""
    recent = [
        {
            "step": m.step,
            "reward": m.reward,
            "criticLoss": m.critic_loss,
            "actorLoss": m.actor_loss,
            "qValue": m.q_value,
        }
        for m in list(metrics)[-window:]
    ]
    return _PROMPT_TEMPLATE.format(metrics=json.dumps(recent))


class GeminiAdvisor:
    """Advisor backed by the Generative Language REST API.

    Parameters
    ----------
    api_key:
        API key sent as the ``key`` query parameter.
    model:
        Model name in the URL path.
    timeout:
        Request timeout in seconds.
    session:
        Optional ``requests.Session`` (connection reuse, tests).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-1.5-flash",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    def analyze(self, metrics: Sequence[TrainingMetric]) -> str:
        payload = {"contents": [{"parts": [{"text": build_prompt(metrics)}]}]}
        response = self._session.post(
            _GEMINI_URL.format(model=self.model),
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return _extract_text(response.json()) or EMPTY_ADVICE


def _extract_text(body: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    parts = candidates[0].get("content", {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts).strip()


def request_advice(advisor: Advisor, metrics: Sequence[TrainingMetric]) -> str:
    """Ask *advisor* for a report; any failure yields :data:`FALLBACK_ADVICE`."""
    snapshot = tuple(metrics)[-ADVICE_WINDOW:]
    try:
        return advisor.analyze(snapshot)
    except Exception:
        logger.exception("Advisor %s failed", type(advisor).__name__)
        return FALLBACK_ADVICE
