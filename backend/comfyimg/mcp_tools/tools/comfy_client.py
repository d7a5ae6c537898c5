"""
ComfyUI HTTP Client

Async client for the ComfyUI server: prompt submission, completion tracking
over the WebSocket event channel, history lookup and image download.
"""

import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import urlencode

import aiohttp

from ...errors import TransportError
from ....utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageRef:
    """Location of an output image on the ComfyUI server."""

    filename: str
    subfolder: str = ""
    type: str = "output"


@dataclass
class GeneratedImage:
    """Downloaded output image."""

    ref: ImageRef
    data: bytes
    content_type: str = "image/png"


def extract_image_refs(history: Dict[str, Any], prompt_id: str) -> List[ImageRef]:
    """
    Collect every image reference of a finished prompt.

    Order follows the history response (node by node, image by image); no
    deduplication is done.
    """
    entry = history.get(prompt_id) if isinstance(history, dict) else None
    if not isinstance(entry, dict):
        raise TransportError(f"Prompt {prompt_id} not found in history")

    refs: List[ImageRef] = []
    outputs = entry.get("outputs") or {}
    if not isinstance(outputs, dict):
        raise TransportError(f"Prompt {prompt_id} history has malformed outputs")
    for node_output in outputs.values():
        if not isinstance(node_output, dict):
            continue
        for image in node_output.get("images") or []:
            if not isinstance(image, dict) or not image.get("filename"):
                continue
            refs.append(
                ImageRef(
                    filename=image["filename"],
                    subfolder=image.get("subfolder", ""),
                    type=image.get("type", "output"),
                )
            )
    return refs


async def watch_events(ws: Any, prompt_id: str) -> None:
    """
    Consume event frames until ``prompt_id`` finishes.

    Binary preview frames, unparsable frames and events for other prompts are
    skipped. Returns on ``execution_success`` (or the final ``executing``
    frame with a null node sent by older servers).

    Raises:
        TransportError: If the prompt fails or the channel closes first.
    """
    while True:
        msg = await ws.receive()

        if msg.type == aiohttp.WSMsgType.BINARY:
            continue
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportError(f"Event channel error: {ws.exception()}")
        if msg.type in (
            aiohttp.WSMsgType.CLOSE,
            aiohttp.WSMsgType.CLOSING,
            aiohttp.WSMsgType.CLOSED,
        ):
            raise TransportError("Event channel closed before the prompt finished")
        if msg.type != aiohttp.WSMsgType.TEXT:
            continue

        try:
            event = json.loads(msg.data)
        except json.JSONDecodeError:
            continue
        if not isinstance(event, dict):
            continue

        data = event.get("data")
        if not isinstance(data, dict) or data.get("prompt_id") != prompt_id:
            continue

        event_type = event.get("type")
        if event_type == "execution_success":
            return
        if event_type == "executing" and data.get("node") is None:
            return
        if event_type == "execution_error":
            raise TransportError(
                f"Prompt {prompt_id} failed on node {data.get('node_id')}: "
                f"{data.get('exception_message', 'unknown error')}"
            )
        if event_type == "execution_interrupted":
            raise TransportError(f"Prompt {prompt_id} was interrupted")


class ComfyClient:
    """Async HTTP/WebSocket client for one ComfyUI server."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        ws_open_timeout: float = 5.0,
        completion_timeout: float = 300.0,
        http_timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.ws_open_timeout = ws_open_timeout
        self.completion_timeout = completion_timeout
        self.http_timeout = http_timeout

    @classmethod
    def from_config(cls, config) -> "ComfyClient":
        return cls(
            base_url=config.base_url,
            api_key=config.api_key,
            ws_open_timeout=config.ws_open_timeout,
            completion_timeout=config.completion_timeout,
            http_timeout=config.http_timeout,
        )

    @property
    def headers(self) -> Dict[str, str]:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    @property
    def ws_url(self) -> str:
        if self.base_url.startswith("https://"):
            return "wss://" + self.base_url[len("https://"):]
        if self.base_url.startswith("http://"):
            return "ws://" + self.base_url[len("http://"):]
        return self.base_url

    def session(self) -> aiohttp.ClientSession:
        """New session carrying auth headers and the HTTP timeout."""
        return aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.http_timeout),
        )

    def image_url(self, ref: ImageRef) -> str:
        params = urlencode({"filename": ref.filename, "subfolder": ref.subfolder, "type": ref.type})
        return f"{self.base_url}/view?{params}"

    async def _read_json(self, resp: aiohttp.ClientResponse, what: str) -> Any:
        if resp.status != 200:
            body = await resp.text()
            logger.error(f"Failed to {what}", status=resp.status, body=body[:500])
            raise TransportError(f"Failed to {what}: HTTP {resp.status}")
        try:
            return await resp.json(content_type=None)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"Failed to {what}: invalid JSON response") from e

    async def get_object_info(self, session: Optional[aiohttp.ClientSession] = None) -> Dict[str, Any]:
        """Get all node definitions."""
        if session is None:
            async with self.session() as own_session:
                return await self.get_object_info(own_session)

        async with session.get(f"{self.base_url}/object_info") as resp:
            data = await self._read_json(resp, "get object_info")
        return data if isinstance(data, dict) else {}

    async def queue_prompt(
        self,
        session: aiohttp.ClientSession,
        workflow: Dict[str, Any],
        client_id: str,
    ) -> str:
        """Submit a workflow and return the server-assigned prompt id."""
        async with session.post(
            f"{self.base_url}/prompt",
            json={"client_id": client_id, "prompt": workflow},
        ) as resp:
            data = await self._read_json(resp, "queue prompt")

        prompt_id = data.get("prompt_id") if isinstance(data, dict) else None
        if not prompt_id:
            logger.error("Prompt rejected", response=data)
            raise TransportError("Failed to queue prompt: no prompt_id in response")
        return prompt_id

    async def get_history(self, session: aiohttp.ClientSession, prompt_id: str) -> Dict[str, Any]:
        """Get execution history for a prompt."""
        async with session.get(f"{self.base_url}/history/{prompt_id}") as resp:
            data = await self._read_json(resp, "get history")
        return data if isinstance(data, dict) else {}

    async def get_image(self, session: aiohttp.ClientSession, ref: ImageRef) -> GeneratedImage:
        """Download one output image."""
        async with session.get(self.image_url(ref)) as resp:
            if resp.status != 200:
                raise TransportError(f"Failed to get image {ref.filename}: HTTP {resp.status}")
            data = await resp.read()
            content_type = resp.content_type or ""

        if not content_type.startswith("image/"):
            content_type = "image/png"
        return GeneratedImage(ref=ref, data=data, content_type=content_type)

    @asynccontextmanager
    async def event_channel(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
    ) -> AsyncIterator[aiohttp.ClientWebSocketResponse]:
        """
        Open the WebSocket event channel for ``client_id``.

        The open must complete within ``ws_open_timeout``; the socket is
        closed on exit whatever happens inside the block.
        """
        url = f"{self.ws_url}/ws?{urlencode({'clientId': client_id})}"
        try:
            ws = await asyncio.wait_for(
                session.ws_connect(url),
                timeout=self.ws_open_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Event channel did not open within {self.ws_open_timeout}s"
            ) from e

        try:
            yield ws
        finally:
            await ws.close()

    async def wait_for_completion(self, ws: Any, prompt_id: str) -> None:
        """Wait for ``prompt_id`` to finish, bounded by ``completion_timeout``."""
        try:
            await asyncio.wait_for(watch_events(ws, prompt_id), timeout=self.completion_timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Prompt {prompt_id} did not complete within {self.completion_timeout}s"
            ) from e

    async def run_workflow(self, workflow: Dict[str, Any]) -> List[GeneratedImage]:
        """
        Execute a bound workflow end to end and download its images.

        The event channel is opened before submission so no completion event
        can be missed.
        """
        client_id = str(uuid.uuid4())

        async with self.session() as session:
            async with self.event_channel(session, client_id) as ws:
                prompt_id = await self.queue_prompt(session, workflow, client_id)
                logger.info("Submitted prompt", prompt_id=prompt_id, client_id=client_id)

                await self.wait_for_completion(ws, prompt_id)
                logger.info("Prompt finished", prompt_id=prompt_id)

            history = await self.get_history(session, prompt_id)
            refs = extract_image_refs(history, prompt_id)

            images = []
            for ref in refs:
                images.append(await self.get_image(session, ref))

        logger.info("Fetched generated images", prompt_id=prompt_id, count=len(images))
        return images
