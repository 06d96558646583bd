"""Apps Script backed application repository.

The applications spreadsheet is exposed through a Google Apps Script web app:

    GET  <url>                     -> {"applications": [...], "stats": {...}}
    GET  <url>?action=borrowers    -> {"borrowers": [...]}
    POST <url>  (text/plain JSON)  -> new application, or
                                      {"action": "updateStatus", ...}

Apps Script rejects CORS preflights, so bodies are sent as text/plain.
"""
import json
import logging

import requests

from swiftkopa.config import APPS_SCRIPT_URL, REQUEST_TIMEOUT_SECONDS
from swiftkopa.exceptions import (
    RepositoryError, EndpointNotConfiguredError, ApplicationNotFoundError,
)
from swiftkopa.repository import ApplicationRepository

logger = logging.getLogger(__name__)

TEXT_PLAIN = {"Content-Type": "text/plain;charset=utf-8"}


class AppsScriptRepository(ApplicationRepository):
    """Reads and writes applications through the Apps Script endpoint."""

    def __init__(self, script_url=None, session=None, timeout=REQUEST_TIMEOUT_SECONDS):
        """Initialize AppsScriptRepository.

        Args:
            script_url: Web app URL (default: APPS_SCRIPT_URL from config).
            session: Optional requests.Session, injected by tests.
            timeout: Seconds to wait for each call.
        """
        self.script_url = APPS_SCRIPT_URL if script_url is None else script_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _request(self, method, params=None, body=None):
        if not self.script_url:
            raise EndpointNotConfiguredError()

        data = json.dumps(body) if body is not None else None
        headers = TEXT_PLAIN if body is not None else None
        try:
            response = self.session.request(
                method, self.script_url, params=params, data=data,
                headers=headers, timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, self.script_url, e)
            raise RepositoryError(f"Request to applications endpoint failed: {e}") from e

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise RepositoryError("Applications endpoint returned invalid JSON") from e

        # The script reports its own failures inside a 200 response
        if isinstance(payload, dict) and payload.get('error'):
            raise RepositoryError(str(payload['error']), {'response': payload})
        return payload

    def fetch_applications(self):
        payload = self._request("GET")
        applications = payload.get('applications') or []
        stats = payload.get('stats') or {}
        logger.info("Fetched %d applications", len(applications))
        return applications, stats

    def update_application(self, row_index, patch):
        body = {
            'action': 'updateStatus',
            'rowNumber': row_index,
            'status': patch.get('status'),
            'notes': patch.get('notes', ''),
        }
        payload = self._request("POST", body=body)
        if isinstance(payload, dict) and payload.get('notFound'):
            raise ApplicationNotFoundError(row_index)
        logger.info("Updated application row %s to %s", row_index, body['status'])

    def submit_application(self, payload):
        self._request("POST", body=payload)
        logger.info(
            "Submitted %s application for %s (%d files)",
            payload.get('loanType'), payload.get('borrowerId'), len(payload.get('files', [])),
        )

    def fetch_borrowers(self):
        payload = self._request("GET", params={'action': 'borrowers'})
        return payload.get('borrowers') or []
