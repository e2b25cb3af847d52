import logging
import os
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

from ..draw.builder import DEFAULT_ITEM_LABEL, TierCounts, normalize_counts
from ..draw.pool import PrizeItem
from ..templates import TemplateDefinition, TemplateRegistry
from .utils import open_session

logger = logging.getLogger(__name__)

TEMPLATES_PATH = "/rest/v1/gacha_templates"
RESULTS_PATH = "/rest/v1/gacha_results"


class GachaApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        load_dotenv()
        url = base_url or os.getenv("GATCHACHA_API_URL")
        if not url:
            raise ValueError("Environment variable 'GATCHACHA_API_URL' is not set")

        self.base_url = url.rstrip("/")
        self.session = session or open_session(api_key, access_token)
        self.timeout = timeout

    # -------- headers --------
    @property
    def write_headers(self) -> Mapping[str, str]:
        # Ask the API to echo inserted rows back.
        return {"Content-Type": "application/json", "Prefer": "return=representation"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[Any] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=dict(headers or {}),
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def list_templates(self) -> list[TemplateDefinition]:
        """Return every template visible to the session, newest first."""
        rows = self._request(
            "GET",
            TEMPLATES_PATH,
            params={"select": "*", "order": "created_at.desc"},
        )
        return [_row_to_definition(row) for row in rows or []]

    def create_template(
        self,
        user_id: str,
        name: str,
        theme: str,
        counts: TierCounts,
        *,
        is_public: bool = False,
    ) -> TemplateDefinition:
        """Insert a user template and return its definition."""
        normalized = normalize_counts(counts)
        payload = {
            "user_id": user_id,
            "name": name,
            "theme": theme,
            **{f"{key}_count": value for key, value in normalized.items()},
            "is_public": is_public,
            "is_system": False,
        }
        rows = self._request(
            "POST", TEMPLATES_PATH, headers=self.write_headers, json=payload
        )
        if not rows:
            raise RuntimeError("Template insert returned no row")
        return _row_to_definition(rows[0])

    def insert_result(
        self, user_id: str, template_id: str, template_name: str, item: PrizeItem
    ) -> dict:
        payload = {
            "user_id": user_id,
            "template_id": template_id,
            "template_name": template_name,
            "item_name": item.name,
            "tier": item.tier,
        }
        rows = self._request("POST", RESULTS_PATH, headers=self.write_headers, json=payload)
        return rows[0] if rows else {}

    def list_results(self, user_id: str, limit: int = 100) -> list[dict]:
        """Return the user's saved results, newest first."""
        return self._request(
            "GET",
            RESULTS_PATH,
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "drawn_at.desc",
                "limit": limit,
            },
        ) or []


def _row_to_definition(row: Mapping[str, Any]) -> TemplateDefinition:
    return TemplateDefinition.create(
        id=str(row["id"]),
        name=row["name"],
        theme=row.get("theme") or "classic",
        counts={f"tier{n}": row.get(f"tier{n}_count") or 0 for n in range(1, 6)},
        item_label=row.get("item_label") or DEFAULT_ITEM_LABEL,
    )


def make_result_hook(
    client: GachaApiClient, user_id: Optional[str]
) -> Callable[[str, str, PrizeItem], None]:
    """Adapt ``client`` into a result hook for :class:`~gatchacha.session.GachaSession`.

    Without a user the hook does nothing, matching anonymous play.
    """

    def _hook(template_id: str, template_name: str, item: PrizeItem) -> None:
        if user_id is None:
            return
        client.insert_result(user_id, template_id, template_name, item)
        logger.debug(f"Saved result '{item.id}' of template '{template_id}' remotely")

    return _hook


def load_remote_templates(client: GachaApiClient) -> TemplateRegistry:
    """Return the templates stored remotely, or the built-in catalogue.

    An empty result, a failed request or an unusable row all fall back to
    :meth:`TemplateRegistry.system`.
    """
    try:
        registry = TemplateRegistry(client.list_templates())
    except (requests.RequestException, KeyError, ValueError):
        logger.exception("Error loading remote templates; using built-in catalogue")
        return TemplateRegistry.system()
    if not len(registry):
        return TemplateRegistry.system()
    return registry


def get_remote_history(
    client: GachaApiClient, user_id: Optional[str], limit: int = 100
) -> list[dict]:
    """Return ``user_id``'s saved results, newest first.

    Anonymous players and failed requests both get an empty list.
    """
    if user_id is None:
        return []
    try:
        return client.list_results(user_id, limit=limit)
    except (requests.RequestException, ValueError):
        logger.exception(f"Error loading gacha history for user {user_id}")
        return []


__all__ = [
    "GachaApiClient",
    "get_remote_history",
    "load_remote_templates",
    "make_result_hook",
]
