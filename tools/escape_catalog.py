"""escape.bar catalog client: game search, detail scraping and player reviews."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.models import CandidateGame, Review
from core.outcomes import UpstreamError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration (environment driven)
# ---------------------------------------------------------------------------
DEFAULT_BASE_URL = "https://escape.bar"
DEFAULT_REVIEWS_URL = "https://bartender.escape.bar/review/get-by-game"
DEFAULT_TIMEOUT_SECONDS = 8
SCARY_TAG = "恐怖驚悚"
_REVIEW_PAGES = 3
_USER_AGENT = os.getenv("CATALOG_USER_AGENT", "Mozilla/5.0")
_UNKNOWN = "未知"

_NEXT_PUSH_PATTERN = re.compile(r'self\.__next_f\.push\(\[\d+,"(b:.*?)"\]\)', re.DOTALL)
_DETAIL_SPAN_SELECTOR = r"span.text-sm.lg\:text-base.font-medium"
_ADDRESS_SELECTOR = r"a.text-sm.lg\:text-base.hover\:text-secondary"
_PRICE_SELECTOR = r"p.mb-2.pl-4.leading-normal.text-sm.lg\:text-base.whitespace-pre-wrap"
_STUDIO_SELECTOR = "h5.chakra-heading.css-o8iskg"
_TAG_BAR_SELECTOR = "div.chakra-stack.css-1rafi8n"
_TAG_SELECTOR = "b.chakra-text.css-0"


def _build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": _USER_AGENT or "Mozilla/5.0", "Accept": "*/*"})
    retry = Retry(total=3, backoff_factor=0.2, status_forcelist=[429, 500, 502, 503, 504])
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


class EscapeBarCatalog:
    """Catalog collaborator. Every failure surfaces as :class:`UpstreamError`."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        reviews_url: str = DEFAULT_REVIEWS_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._reviews_url = reviews_url
        self._timeout = timeout
        self._session = session or _build_session()

    # --- Search --------------------------------------------------------------
    def search_games(self, title: str) -> List[CandidateGame]:
        """Return catalog games whose title contains ``title``, in catalog order."""

        url = f"{self._base_url}/games?outdoor=true&over=true&q={quote(title)}"
        html = self._get_text(url)
        games = parse_games_listing(html)
        query = title.strip()
        return [game for game in games if query in game.title]

    # --- Game page -------------------------------------------------------------
    def get_description(self, game_id: str) -> str:
        url = self.game_url(game_id)
        return parse_game_description(self._get_text(url), url)

    def get_tags(self, game_id: str) -> List[str]:
        return parse_game_tags(self._get_text(self.game_url(game_id)))

    def is_scary(self, game_id: str) -> bool:
        return SCARY_TAG in self.get_tags(game_id)

    def game_url(self, game_id: str) -> str:
        return f"{self._base_url}/game/{game_id}"

    # --- Reviews -------------------------------------------------------------
    def get_reviews(self, game_id: str) -> List[Review]:
        """Collect up to three pages of non-spoiler reviews sorted by feedback."""

        reviews: List[Review] = []
        cursor: Optional[str] = None
        for _ in range(_REVIEW_PAGES):
            params: Dict[str, Any] = {"gameId": game_id, "sort": "feedbackPoints"}
            if cursor:
                params["lastUserCustomId"] = cursor
            data = self._get_json(self._reviews_url, params=params)
            reviews.extend(parse_reviews(data.get("reviewDataList") or []))
            cursor = data.get("lastUserCustomId")
            if not cursor:
                break
        return reviews

    # --- HTTP helpers ----------------------------------------------------------
    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self._timeout)
        try:
            response = self._session.get(url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Catalog request failed url=%s error=%s", url, exc)
            raise UpstreamError("catalog", f"Request to {url} failed: {exc}") from exc
        return response

    def _get_text(self, url: str) -> str:
        return self._get(url).text

    def _get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._get(url, **kwargs)
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError("catalog", f"Invalid JSON from {url}") from exc
        if not isinstance(data, dict):
            raise UpstreamError("catalog", f"Unexpected payload from {url}")
        return data


# ---------------------------------------------------------------------------
# HTML / payload parsing (pure, unit-testable)
# ---------------------------------------------------------------------------
def parse_games_listing(html: str) -> List[CandidateGame]:
    """Decode the ``gamesListData`` array embedded in the listing page scripts."""

    soup = BeautifulSoup(html, "html.parser")
    games: List[CandidateGame] = []
    for script in soup.find_all("script"):
        content = script.string or script.get_text()
        if not content or "self.__next_f.push" not in content:
            continue
        match = _NEXT_PUSH_PATTERN.search(content)
        if not match:
            continue
        encoded = match.group(1)
        colon = encoded.find(":")
        if colon == -1:
            continue
        try:
            # The payload is a JSON string literal holding JSON.
            level1 = json.loads(json.loads(f'"{encoded[colon + 1:]}"'))
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Skipping undecodable listing script: %s", exc)
            continue
        games.extend(_games_from_payload(level1))
    return games


def _games_from_payload(payload: Any) -> Iterable[CandidateGame]:
    if not isinstance(payload, list) or len(payload) < 4 or not isinstance(payload[3], dict):
        return []
    listing = payload[3].get("gamesListData")
    if not isinstance(listing, list):
        return []
    return [
        CandidateGame(title=str(item.get("title", "")), venue_id=str(item.get("cityId", "")), game_id=str(item.get("gameId", "")))
        for item in listing
        if isinstance(item, dict) and item.get("gameId") is not None
    ]


def parse_game_description(html: str, url: str) -> str:
    soup = BeautifulSoup(html, "html.parser")

    spans = soup.select(_DETAIL_SPAN_SELECTOR)
    people = spans[0].get_text(strip=True) if len(spans) > 0 else _UNKNOWN
    duration = spans[1].get_text(strip=True) if len(spans) > 1 else _UNKNOWN

    address_el = soup.select_one(_ADDRESS_SELECTOR)
    address = (address_el.get_text(strip=True) if address_el else "") or _UNKNOWN
    map_link = (address_el.get("href") if address_el else "") or ""

    price_el = soup.select_one(_PRICE_SELECTOR)
    price = (price_el.get_text().replace("\n", " ").strip() if price_el else "") or _UNKNOWN

    studio_el = soup.select_one(_STUDIO_SELECTOR)
    studio = (studio_el.get_text(strip=True) if studio_el else "") or _UNKNOWN

    return (
        f"人數：{people}\n遊戲時長：{duration}\n價格: {price}\n工作室: {studio}\n"
        f"主題介紹: {url}\n地址：{address}\n{map_link}"
    )


def parse_game_tags(html: str) -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    bar = soup.select_one(_TAG_BAR_SELECTOR)
    if bar is None:
        return []
    return [tag.get_text(strip=True) for tag in bar.select(_TAG_SELECTOR)]


def parse_reviews(rows: Iterable[Any]) -> List[Review]:
    reviews: List[Review] = []
    for row in rows:
        if not isinstance(row, dict) or row.get("isSpoiler"):
            continue
        try:
            rating = float(row.get("rating", 0))
            weight = int(row.get("feedbackPoints", 0) or 0)
        except (TypeError, ValueError):
            continue
        reviews.append(Review(rating=rating, comment=str(row.get("comment", "")), feedback_weight=weight))
    return reviews


__all__ = [
    "EscapeBarCatalog",
    "SCARY_TAG",
    "parse_games_listing",
    "parse_game_description",
    "parse_game_tags",
    "parse_reviews",
]
