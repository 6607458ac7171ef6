from __future__ import annotations

import logging

import requests

from .errors import FetchError
from .models import EntitySnapshot

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Fetches entity state from the Home Assistant REST API.

    Every failure mode (network, auth, unknown entity, malformed payload)
    surfaces as FetchError so callers can treat them uniformly.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        })

    def get_entity(self, entity_id: str) -> EntitySnapshot:
        url = f"{self._base_url}/api/states/{entity_id}"
        try:
            r = self._session.get(url, timeout=self._timeout)
            r.raise_for_status()
            js = r.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 404:
                raise FetchError(f"Entity {entity_id!r} not found") from e
            raise FetchError(f"Fetching {entity_id!r} failed with HTTP {status}") from e
        except (requests.RequestException, ValueError) as e:
            raise FetchError(f"Fetching {entity_id!r} failed: {e}") from e

        try:
            snapshot = EntitySnapshot.from_api(js)
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed state payload for {entity_id!r}") from e

        logger.debug("Fetched %s: %s", entity_id, snapshot.state)
        return snapshot
