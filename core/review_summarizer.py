"""Turn raw player reviews into a short AI-written verdict.

Reviews come from the catalog collaborator; the summary comes from an OpenAI
chat completion. Every failure along the way is reported as
``UpstreamError("summarizer", ...)`` so the command handler can answer with
the generic retry message.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Sequence, Tuple

from openai import OpenAI

from core.collaborators import GameCatalog
from core.models import Review
from core.outcomes import UpstreamError

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = "你是一位密室逃脫老手，會看其他玩家的留言"
_USER_PROMPT = (
    "請幫我根據留言，分析這個主題: \n{comments}的特色、令人讚賞的地方與被嫌棄的地方，"
    "分別條列式這些內容，內容請精簡，不要過多的贅述或鋪陳，"
    "請根據feedbackPoints(代表其他人贊不贊同這則留言)，與rating(留言者給此主題的評價)，做為加權。"
    "另外請給出總分1~5分，需參考留言多寡，去除標準差問題，可以有小數點，"
    "總分請以分數/總分表示，希望總分可以放在回覆的開頭以便閱讀"
)


class ReviewSummarizer:
    """Summarizes catalog reviews with an OpenAI model."""

    def __init__(self, model: str, api_key: str | None, catalog: GameCatalog, *, temperature: float = 0.7):
        self._model = model
        self._api_key = api_key
        self._catalog = catalog
        self._temperature = temperature

    # --- Prompt construction ---------------------------------------------------
    def _build_prompt(self, reviews: Sequence[Review]) -> str:
        rows = [
            {"rating": review.rating, "comment": review.comment, "feedbackPoints": review.feedback_weight}
            for review in reviews
        ]
        return _USER_PROMPT.format(comments=json.dumps(rows, ensure_ascii=False, indent=2))

    def summarize_reviews(self, game_id: str) -> str:
        reviews = self._catalog.get_reviews(game_id)
        if not reviews:
            return "目前沒有足夠的玩家評論可以整理"

        content, error = self._chat_completion(
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(reviews)},
            ],
            label="Review summary",
        )
        if error:
            raise UpstreamError("summarizer", error)
        if not content or not content.strip():
            raise UpstreamError("summarizer", "Review summary returned an empty response.")
        return content.strip()

    # --- Shared OpenAI helper ------------------------------------------------
    def _chat_completion(self, messages: List[Dict[str, str]], label: str) -> Tuple[str | None, str | None]:
        if not self._api_key:
            return None, f"{label} is not configured."

        client = OpenAI(api_key=self._api_key)
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
            )
        except Exception as exc:  # pragma: no cover - network/credentials issues
            logger.error("%s failed: %s", label, exc)
            return None, f"{label} failed: {exc}"

        choice = response.choices[0]
        content = getattr(choice.message, "content", None)
        return content, None


__all__ = ["ReviewSummarizer"]
