"""Signed event reporting to the skill dispatch endpoint."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, urlencode

import aiohttp

from pyyoda._constants import EVENT_REQUEST_SERVICE
from pyyoda._redact import redact_auth_header, redact_for_log
from pyyoda.config import DeviceProfile, YodaConfig
from pyyoda.exceptions import YodaApiError, YodaError, YodaTransportError

_logger = logging.getLogger(__name__)


def build_sign(fields: Mapping[str, Any]) -> str:
    """Sign *fields* as uppercase MD5 of their query-string form.

    Key order is preserved. Values are percent-encoded with ``%20`` for
    spaces, leaving ``!'()*`` unescaped.
    """
    query = urlencode(dict(fields), quote_via=quote, safe="!'()*")
    return hashlib.md5(query.encode("utf-8")).hexdigest().upper()


def build_auth_header(device: DeviceProfile, *, now: float | None = None) -> str:
    """Build the ``Authorization`` header for an event request.

    The signed fields are, in order: ``key``, ``device_type_id``,
    ``device_id``, ``service``, ``version``, ``time`` and ``secret``.
    The secret itself never appears in the header.
    """
    timestamp = int(now if now is not None else time.time())
    data: dict[str, Any] = {
        "key": device.key,
        "device_type_id": device.device_type_id,
        "device_id": device.device_id,
        "service": EVENT_REQUEST_SERVICE,
        "version": device.api_version,
        "time": timestamp,
        "secret": device.secret,
    }
    return ";".join(
        [
            f"version={data['version']}",
            f"time={data['time']}",
            f"sign={build_sign(data)}",
            f"key={data['key']}",
            f"device_type_id={data['device_type_id']}",
            f"device_id={data['device_id']}",
            f"service={data['service']}",
        ]
    )


class EventRequestClient:
    """Async client for skill event reporting.

    Usage::

        async with EventRequestClient(YodaConfig.from_profile()) as client:
            await client.tts_event("tts.end", app_id, item_id)
    """

    def __init__(
        self,
        config: YodaConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._clock = clock

    async def __aenter__(self) -> EventRequestClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.event_req_timeout),
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise YodaError("Client not initialized. Use 'async with EventRequestClient(...) as client:'")
        return self._http_session

    async def request(
        self,
        event: str,
        app_id: str,
        options: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send *event* for *app_id* and return the ``response`` field of the reply."""
        http = self._require_session()
        endpoint = self._config.event_req_uri
        url = self._config.event_req_url

        data = {
            "event": event,
            "appId": app_id,
            "extra": json.dumps(dict(options or {}), separators=(",", ":")),
        }
        _logger.info("event: %s", redact_for_log(data))

        auth = build_auth_header(self._config.device, now=self._clock())
        headers = {
            "Authorization": auth,
            "Content-Type": "application/json;charset=utf-8",
        }
        if self._config.api_trace_enabled:
            _logger.debug("POST %s authorization=%s", url, redact_auth_header(auth))

        try:
            async with http.post(url, data=json.dumps(data), headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise YodaTransportError(
                        f"Failed upload {event}: HTTP {resp.status} {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except YodaTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise YodaTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise YodaTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(body, dict):
            raise YodaApiError(f"Unexpected reply shape from {endpoint}", endpoint=endpoint)
        if self._config.api_trace_enabled:
            _logger.debug("Reply for %s: %s", event, redact_for_log(body))
        return body.get("response")

    async def tts_event(self, name: str, app_id: str, item_id: str) -> Any:
        """Report a voice (TTS) event for *item_id*."""
        return await self.request(name, app_id, {"voice": {"itemId": item_id}})

    async def media_event(self, name: str, app_id: str, extra: Mapping[str, Any]) -> Any:
        """Report a media playback event."""
        return await self.request(name, app_id, {"media": dict(extra)})
