"""
Onboarding conversation -> FlightAlert.

An extractor turns the chat transcript into ExtractedPreferences; local
normalization then resolves the home airport and a numeric budget before the
alert is written.
"""
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vandra.config import get_settings
from vandra.models.flight_alert import FlightAlert, AlertStatus
from vandra.services.ai_service import AIService, Message
from vandra.services.airports import AIRPORTS, find_city_name, get_airport, resolve_airport_code
from vandra.services.destinations import FLEXIBLE_KEYWORDS, WARM_KEYWORDS, find_region

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Your flight deal finder"
EXTRACTION_MAX_TOKENS = 500

EXTRACTION_PROMPT = """Analyze this conversation and extract the user's flight preferences. Return ONLY valid JSON with this structure:

{
  "homeAirport": "3-letter airport code or city name they fly from",
  "destinations": "where they want to go, kept natural (e.g., 'Europe', 'Japan', 'anywhere warm', 'beach destinations')",
  "timing": "when they want to travel, kept natural (e.g., 'spring', 'next 3 months', 'flexible', 'summer 2026')",
  "priceText": "their price preference as stated (e.g., 'under $500', 'cheap', 'good deals', 'around $800')",
  "maxPrice": number or null (numeric value if they gave a specific budget, e.g., 'under $650' -> 650),
  "summary": "A fun, friendly summary like 'Your Europe scout, hunting deals under $650' or 'Finding you beach escapes this spring'"
}

If any field wasn't discussed, use null. Keep destinations and timing in natural language; don't convert them to codes."""

PRICE_PATTERN = re.compile(r"\$?\s*(\d+(?:,\d{3})*(?:\.\d{2})?)")


@dataclass
class ExtractedPreferences:
    home_airport: Optional[str] = None
    destinations: Optional[str] = None
    timing: Optional[str] = None
    price_text: Optional[str] = None
    max_price: Optional[float] = None
    summary: str = DEFAULT_SUMMARY

    @classmethod
    def from_model_json(cls, data: Dict[str, Any]) -> "ExtractedPreferences":
        def text(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        max_price = data.get("maxPrice")
        if isinstance(max_price, bool) or not isinstance(max_price, (int, float)):
            max_price = None

        return cls(
            home_airport=text("homeAirport"),
            destinations=text("destinations"),
            timing=text("timing"),
            price_text=text("priceText"),
            max_price=float(max_price) if max_price is not None else None,
            summary=text("summary") or DEFAULT_SUMMARY,
        )


@dataclass
class AlertCreation:
    alert: FlightAlert
    preferences: ExtractedPreferences
    origin_fallback_used: bool


def format_transcript(messages: List[Message]) -> str:
    body = "\n\n".join(f"{m['role']}: {m['content']}" for m in messages)
    return f"Here's the conversation:\n\n{body}"


def parse_max_price(price_text: Optional[str], max_price: Optional[float]) -> Optional[float]:
    """Prefer a positive number from the model, else the first amount in the price text."""
    if max_price is not None and max_price > 0:
        return float(max_price)

    if not price_text:
        return None

    match = PRICE_PATTERN.search(price_text)
    if match:
        return float(match.group(1).replace(",", ""))

    return None


def _strip_code_fence(text: str) -> str:
    json_str = text.strip()
    if json_str.startswith("```"):
        json_str = json_str.split("```")[1]
        if json_str.startswith("json"):
            json_str = json_str[4:]
    return json_str.strip()


class PreferenceExtractor(ABC):
    @abstractmethod
    async def extract(self, messages: List[Message]) -> ExtractedPreferences:
        pass


class LLMPreferenceExtractor(PreferenceExtractor):
    """
    One-shot model call. Output that isn't a JSON object yields default
    preferences; a failed model call raises AIServiceError.
    """

    async def extract(self, messages: List[Message]) -> ExtractedPreferences:
        response = await AIService.complete(
            [{"role": "user", "content": format_transcript(messages)}],
            system_prompt=EXTRACTION_PROMPT,
            max_tokens=EXTRACTION_MAX_TOKENS,
        )

        try:
            data = json.loads(_strip_code_fence(response))
        except ValueError:
            logger.warning(f"Failed to parse preferences: {response[:200]!r}")
            return ExtractedPreferences()

        if not isinstance(data, dict):
            logger.warning(f"Preferences were not a JSON object: {response[:200]!r}")
            return ExtractedPreferences()

        return ExtractedPreferences.from_model_json(data)


_TIMING_KEYWORDS = (
    "next month", "soon", "summer", "spring", "fall", "autumn",
    "winter", "holiday", "flexible", "anytime",
)
_PRICE_TEXT_PATTERN = re.compile(
    r"(?:(?:under|below|less than|around|about|max|up to)\s*)?\$\s?\d[\d,]*(?:\.\d{2})?",
    re.IGNORECASE,
)
_CODE_TOKEN = re.compile(r"\b([A-Z]{3})\b")


class HeuristicPreferenceExtractor(PreferenceExtractor):
    """Keyword and regex extraction over the user's turns, for when no model is configured."""

    def _home_airport(self, texts: List[str]) -> Optional[str]:
        for text in texts:
            for token in _CODE_TOKEN.findall(text):
                if token in AIRPORTS:
                    return token
            city = find_city_name(text)
            if city:
                return city
        return None

    def _destinations(self, texts: List[str]) -> Optional[str]:
        for text in texts:
            region = find_region(text)
            if region:
                return region.name.replace("_", " ").title()
            lowered = text.lower()
            if any(k in lowered for k in FLEXIBLE_KEYWORDS):
                warm = any(k in lowered for k in WARM_KEYWORDS)
                return "anywhere warm" if warm else "anywhere"
        return None

    def _timing(self, texts: List[str]) -> Optional[str]:
        for text in texts:
            lowered = text.lower()
            for keyword in _TIMING_KEYWORDS:
                if keyword in lowered:
                    return keyword
        return None

    def _price_text(self, texts: List[str]) -> Optional[str]:
        for text in texts:
            match = _PRICE_TEXT_PATTERN.search(text)
            if match:
                return match.group(0).strip()
        return None

    async def extract(self, messages: List[Message]) -> ExtractedPreferences:
        texts = [m["content"] for m in messages if m.get("role") == "user" and m.get("content")]

        destinations = self._destinations(texts)
        price_text = self._price_text(texts)
        max_price = parse_max_price(price_text, None)

        summary = DEFAULT_SUMMARY
        if destinations and max_price:
            summary = f"Your {destinations} scout, hunting deals under ${max_price:,.0f}"
        elif destinations:
            summary = f"Your {destinations} scout"

        return ExtractedPreferences(
            home_airport=self._home_airport(texts),
            destinations=destinations,
            timing=self._timing(texts),
            price_text=price_text,
            max_price=max_price,
            summary=summary,
        )


def get_default_extractor() -> PreferenceExtractor:
    if AIService.is_configured():
        return LLMPreferenceExtractor()
    return HeuristicPreferenceExtractor()


def resolve_origin(db: Session, home_airport: Optional[str]) -> tuple[str, bool]:
    """Origin code for the alert and whether the fallback had to be used."""
    fallback = get_settings().fallback_origin_code
    code = resolve_airport_code(home_airport)

    if code and get_airport(db, code):
        return code, False

    if home_airport:
        logger.info(f"Home airport '{home_airport}' not recognised, using {fallback}")
    return fallback, True


async def create_alert_from_conversation(
    db: Session,
    user_id: int,
    messages: List[Message],
    extractor: Optional[PreferenceExtractor] = None,
) -> AlertCreation:
    extractor = extractor or get_default_extractor()
    preferences = await extractor.extract(messages)

    origin_code, fallback_used = resolve_origin(db, preferences.home_airport)
    max_price = parse_max_price(preferences.price_text, preferences.max_price)

    alert = FlightAlert(
        user_id=user_id,
        origin_code=origin_code,
        max_price=max_price,
        destination_text=preferences.destinations,
        timing_text=preferences.timing,
        price_text=preferences.price_text,
        summary=preferences.summary,
        status=AlertStatus.ACTIVE.value,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)

    logger.info(
        f"Created flight alert {alert.id}: origin={origin_code} "
        f"destination={preferences.destinations!r} timing={preferences.timing!r} max_price={max_price}"
    )
    return AlertCreation(alert=alert, preferences=preferences, origin_fallback_used=fallback_used)
