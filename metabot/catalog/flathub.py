"""Client for the Flathub catalog API."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

DEFAULT_BASE_URL = "https://flathub.org/api/v2"

FORGE_HOSTS = ("github.com", "gitlab.com", "codeberg.org", "bitbucket.org", "git.sr.ht")

_TRACKER_SUFFIX = re.compile(r"/(issues|bugs|tracker).*$", re.IGNORECASE)


class CatalogError(RuntimeError):
    """Raised when the catalog API cannot be reached or answers unexpectedly."""


@dataclass
class AppInfo:
    """The parts of an appstream record that generation and publishing use."""

    id: str
    name: str
    summary: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    urls: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, app_id: str, payload: Dict[str, Any]) -> "AppInfo":
        description = payload.get("description")
        keywords = payload.get("keywords")
        categories = payload.get("categories")
        urls = payload.get("urls")
        return cls(
            id=str(payload.get("id") or app_id),
            name=str(payload.get("name") or app_id),
            summary=payload.get("summary") if isinstance(payload.get("summary"), str) else None,
            description=description if isinstance(description, str) else None,
            categories=[str(c) for c in categories] if isinstance(categories, list) else [],
            keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
            urls={k: str(v) for k, v in urls.items() if v} if isinstance(urls, dict) else {},
        )


def repository_url(app: AppInfo) -> Optional[str]:
    """Best guess at the upstream source repository for ``app``."""
    vcs = app.urls.get("vcs_browser")
    if vcs:
        return vcs

    homepage = app.urls.get("homepage")
    if homepage and _on_forge(homepage):
        return homepage

    tracker = app.urls.get("bugtracker")
    if tracker and _on_forge(tracker):
        return _TRACKER_SUFFIX.sub("", tracker)
    return None


def flathub_repo_url(app_id: str) -> str:
    """The Flathub packaging repository for ``app_id``."""
    return f"https://github.com/flathub/{app_id}"


def _on_forge(url: str) -> bool:
    lowered = url.lower()
    return any(host in lowered for host in FORGE_HOSTS)


class FlathubClient:
    """Thin JSON-over-HTTP wrapper for the endpoints metabot needs."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, *, request_timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout

    def get_appstream(self, app_id: str) -> AppInfo:
        payload = self._request("GET", f"/appstream/{quote(app_id)}")
        if not isinstance(payload, dict):
            raise CatalogError(f"Unexpected appstream payload for {app_id}")
        return AppInfo.from_payload(app_id, payload)

    def get_summary(self, app_id: str) -> Dict[str, Any]:
        payload = self._request("GET", f"/summary/{quote(app_id)}")
        return payload if isinstance(payload, dict) else {}

    def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        payload = self._request("POST", "/search", {"query": query, "hits_per_page": limit})
        hits = payload.get("hits") if isinstance(payload, dict) else None
        return [hit for hit in hits if isinstance(hit, dict)] if isinstance(hits, list) else []

    def get_categories(self) -> List[str]:
        payload = self._request("GET", "/collection/category")
        return [str(name) for name in payload if name] if isinstance(payload, list) else []

    def _request(self, method: str, path: str, body: Dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        headers = {"Accept": "application/json"}
        if data is not None:
            headers["Content-Type"] = "application/json"
        request = Request(url, data=data, headers=headers, method=method)
        try:
            with urlopen(request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise CatalogError(f"Catalog request {method} {path} failed with status {exc.code}") from exc
        except URLError as exc:
            raise CatalogError(f"Catalog request {method} {path} failed: {exc.reason}") from exc
        try:
            return json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise CatalogError(f"Catalog returned invalid JSON for {path}") from exc


__all__ = ["AppInfo", "CatalogError", "FlathubClient", "flathub_repo_url", "repository_url"]
