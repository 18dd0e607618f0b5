from __future__ import annotations

import http.client
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

SUMMARY_EMPTY = "Unable to generate summary."
SUMMARY_UNAVAILABLE = "Market summary currently unavailable."

EXPO_SCOUT_PROMPT = """Act as an industrial event researcher. Find 6-8 major upcoming manufacturing, engineering, additive manufacturing, or machine tool expos happening in India over the next two years.
Focus on major hubs: Pune (Auto cluster), Bengaluru (Aerospace/Tech), Delhi/NCR (General), Mumbai, Chennai, and Ahmedabad.
Industry focus: {industry}.
Return a clean JSON array. Each object must have:
- name: Full event name
- date: Clear date string (e.g. Oct 12-14, 2025)
- location: City, State (e.g. Pune, Maharashtra)
- industry: Specific sub-sector (e.g. Die & Mould, AM, CNC)
- region: 'India'
- description: A brief 10-word summary of the event scale.
- link: A valid-looking placeholder URL if real one isn't known."""

SUMMARY_PROMPT = """Based on this Indian manufacturing sales data: {data}.
Provide a concise 2-sentence executive summary of the performance in the Indian context and one strategic recommendation. Use INR currency terms."""

_EXPO_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            k: {"type": "STRING"} for k in ("name", "date", "location", "industry", "region", "description", "link")
        },
        "required": ["name", "date", "location", "industry", "region", "description"],
    },
}


class GenAIError(RuntimeError):
    pass


class GenAIRateLimited(GenAIError):
    pass


@dataclass(frozen=True)
class GenAIClient:
    api_key: str
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: int = 30

    def generate_content(
        self,
        prompt: str,
        *,
        response_mime_type: str | None = None,
        response_schema: dict[str, Any] | None = None,
        retries: int = 2,
    ) -> str:
        """POST to models/<model>:generateContent and return the concatenated text parts."""
        if not self.api_key:
            raise GenAIError("GEMINI_API_KEY is not configured")
        url = f"{self.base_url.rstrip('/')}/models/{urllib.parse.quote(self.model)}:generateContent"
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        generation_config: dict[str, Any] = {}
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        if response_schema:
            generation_config["responseSchema"] = response_schema
        if generation_config:
            body["generationConfig"] = generation_config
        payload = json.dumps(body).encode("utf-8")

        last_err: Exception | None = None
        for attempt in range(retries + 1):
            try:
                req = urllib.request.Request(url, data=payload, method="POST")
                req.add_header("Content-Type", "application/json")
                req.add_header("x-goog-api-key", self.api_key)
                with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    raw = resp.read()
                try:
                    data = json.loads(raw.decode("utf-8"))
                except ValueError as e:
                    raise GenAIError("Invalid JSON from generateContent") from e
                return _extract_text(data)
            except urllib.error.HTTPError as e:
                if e.code in (429, 503):
                    time.sleep(min(2 * (attempt + 1), 10))
                    last_err = GenAIRateLimited(f"HTTP {e.code}")
                    continue
                detail = e.read().decode("utf-8", errors="ignore")
                raise GenAIError(f"HTTP {e.code} from generateContent: {detail[:300]}") from e
            except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
                last_err = e
                time.sleep(min(attempt + 1, 5))
        raise GenAIError(f"generateContent failed after retries: {last_err}")

    def fetch_upcoming_expos(self, industry: str = "Manufacturing & 3D Printing") -> list[dict[str, Any]]:
        """Scouted expo listings; any failure is logged and yields an empty list."""
        try:
            text = self.generate_content(
                EXPO_SCOUT_PROMPT.format(industry=industry),
                response_mime_type="application/json",
                response_schema=_EXPO_SCHEMA,
            )
            items = json.loads(text)
        except (GenAIError, ValueError) as e:
            logger.error("Error fetching expos from generative API: %s", e)
            return []
        if not isinstance(items, list):
            logger.warning("Expo scout returned %s, expected a list", type(items).__name__)
            return []
        return [i for i in items if isinstance(i, dict)]

    def generate_market_summary(self, data: Any) -> str:
        try:
            text = self.generate_content(SUMMARY_PROMPT.format(data=json.dumps(data, default=str)))
        except GenAIError as e:
            logger.error("Error generating market summary: %s", e)
            return SUMMARY_UNAVAILABLE
        return text.strip() or SUMMARY_EMPTY


def _extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


def client_from_config(config: dict) -> GenAIClient:
    return GenAIClient(
        api_key=(config.get("GEMINI_API_KEY") or "").strip(),
        model=(config.get("GEMINI_MODEL") or "gemini-1.5-flash").strip(),
        timeout_seconds=int(config.get("GEMINI_TIMEOUT_SECONDS") or 30),
    )
