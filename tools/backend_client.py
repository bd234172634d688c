"""Story backend HTTP API client.

Base URL : Settings.backend_url (e.g. http://localhost:8000)
Encoding : application/json
Routes   : /api/projects, /api/projects/{id}/chapters/...

Every transport failure or non-success status is turned into a
BackendError subclass here, so callers never see raw httpx exceptions.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from config.exceptions import BackendResponseError, BackendUnavailableError
from config.settings import Settings
from models.chapter import Chapter, PATCHABLE_FIELDS
from models.project import Project

logger = logging.getLogger(__name__)

PROMPT_ONLY_MODE = "prompt_only"


@dataclass(frozen=True)
class PromptOnly:
    """Generate response returned when the backend has no model configured."""
    prompt: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message") or body.get("error")
        if isinstance(detail, list):
            # FastAPI-style validation errors
            detail = "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
        if detail:
            return str(detail)
    text = response.text.strip()
    return text[:300] if text else response.reason_phrase or "unknown error"


def _as_chapter(data: object, path: str) -> Chapter:
    if not isinstance(data, dict):
        raise BackendResponseError(f"API {path} returned a non-object chapter", path=path)
    try:
        return Chapter.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise BackendResponseError(f"API {path} returned a malformed chapter: {e}", path=path) from e


def _as_chapter_list(data: object, path: str) -> list[Chapter]:
    if not isinstance(data, list):
        raise BackendResponseError(f"API {path} returned a non-list chapter set", path=path)
    return [_as_chapter(item, path) for item in data]


def _as_project(data: object, path: str) -> Project:
    if not isinstance(data, dict):
        raise BackendResponseError(f"API {path} returned a non-object project", path=path)
    try:
        return Project.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise BackendResponseError(f"API {path} returned a malformed project: {e}", path=path) from e


def _is_prompt_only(body: object) -> bool:
    return isinstance(body, dict) and body.get("mode") == PROMPT_ONLY_MODE


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class BackendClient:
    """Async client for the story backend REST API.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or Settings()
        self._client = httpx.AsyncClient(
            base_url=self.settings.backend_url,
            timeout=self.settings.request_timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- Low-level HTTP helpers ----------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to BackendUnavailableError."""
        kwargs: dict = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(
                f"Backend timed out on {method} {path}", {"path": path}
            ) from e
        except httpx.HTTPError as e:
            raise BackendUnavailableError(
                f"Backend unreachable for {method} {path}: {e}", {"path": path}
            ) from e

        logger.debug("%s %s → HTTP %d  body=%r", method, path, response.status_code, response.text[:200])
        return response

    @staticmethod
    def _body(response: httpx.Response, path: str) -> object:
        """Return the decoded JSON body, or None for empty responses."""
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendResponseError(
                f"API {path} returned non-JSON (HTTP {response.status_code}): {response.text[:300]}",
                status_code=response.status_code,
                path=path,
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> object:
        """Send a request and return its JSON body; raise on non-success."""
        response = await self._send(method, path, json=json, timeout=timeout)
        if not response.is_success:
            raise BackendResponseError(
                _error_detail(response), status_code=response.status_code, path=path
            )
        return self._body(response, path)

    # ---- Projects --------------------------------------------------------

    async def create_project(self, payload: dict) -> Project:
        path = "/api/projects"
        data = await self._request("POST", path, json=payload)
        project = _as_project(data, path)
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    async def list_projects(self) -> list[Project]:
        path = "/api/projects"
        data = await self._request("GET", path)
        if not isinstance(data, list):
            raise BackendResponseError(f"API {path} returned a non-list project set", path=path)
        return [_as_project(item, path) for item in data]

    async def delete_project(self, project_id: str) -> None:
        path = f"/api/projects/{project_id}"
        await self._request("DELETE", path)
        logger.info("Deleted project %s", project_id)

    # ---- Chapters --------------------------------------------------------

    async def init_chapters(self, project_id: str) -> list[Chapter]:
        """Create (or return existing) chapter scaffolding for a project."""
        path = f"/api/projects/{project_id}/chapters/init"
        data = await self._request("POST", path)
        return _as_chapter_list(data, path)

    async def list_chapters(self, project_id: str) -> list[Chapter]:
        path = f"/api/projects/{project_id}/chapters"
        data = await self._request("GET", path)
        return _as_chapter_list(data, path)

    async def generate_chapter(self, project_id: str, number: int) -> Chapter | PromptOnly:
        """Ask the backend to generate a chapter.

        Returns the updated Chapter, or PromptOnly when the backend has no
        generation model configured.
        """
        path = f"/api/projects/{project_id}/chapters/{number}/generate"
        response = await self._send("POST", path, timeout=self.settings.generation_timeout)

        # The prompt-only body is honoured whatever the status code
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        if _is_prompt_only(body):
            prompt = body.get("prompt")
            if not isinstance(prompt, str):
                raise BackendResponseError(
                    f"API {path} returned prompt_only without a prompt",
                    status_code=response.status_code,
                    path=path,
                )
            logger.info("Chapter %d: backend returned prompt only (%d chars)", number, len(prompt))
            return PromptOnly(prompt=prompt)

        if not response.is_success:
            raise BackendResponseError(
                _error_detail(response), status_code=response.status_code, path=path
            )
        return _as_chapter(self._body(response, path), path)

    async def build_prompt(self, project_id: str, number: int) -> str:
        path = f"/api/projects/{project_id}/chapters/{number}/prompt"
        data = await self._request("POST", path)
        if not isinstance(data, dict) or not isinstance(data.get("prompt"), str):
            raise BackendResponseError(f"API {path} returned no prompt", path=path)
        return data["prompt"]

    async def update_chapter(self, project_id: str, number: int, patch: dict) -> Chapter:
        """Send a partial update; fields not in ``patch`` stay unchanged server-side."""
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported chapter fields: {sorted(unknown)}")
        path = f"/api/projects/{project_id}/chapters/{number}"
        data = await self._request("PATCH", path, json=patch)
        return _as_chapter(data, path)
