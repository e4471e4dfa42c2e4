"""Pytest fixtures: a recording fake REST server, in-memory storage and app contexts."""
import asyncio
import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

# Must be set before config is imported
os.environ.setdefault("ENABLE_FILE_LOGGING", "false")
os.environ.setdefault("ENABLE_CONSOLE_LOGGING", "false")
os.environ.setdefault("MEDIVISION_API_URL", "http://127.0.0.1:9")

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from api import ApiClient
from storage import KeyValueStore
from ui import create_app_context


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    json: Any = None
    files: Dict[str, Tuple[str, bytes]] = field(default_factory=dict)


@dataclass
class Reply:
    status: int = 200
    json: Any = None
    text: Optional[str] = None
    delay: float = 0.0


Handler = Callable[[RecordedRequest], Awaitable[web.StreamResponse]]


class FakeApi:
    """Fake medicine service; replies are registered per (method, path)"""

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.replies: Dict[Tuple[str, str], List[Union[Reply, Handler]]] = {}
        self.base_url = ""
        self.app = web.Application()
        self.app.router.add_route("*", "/{tail:.*}", self._handle)

    def reply(self, method: str, path: str, status: int = 200, json: Any = None,
              text: Optional[str] = None, delay: float = 0.0):
        """Queue a reply; the last queued reply keeps answering"""
        self.replies.setdefault((method, path), []).append(Reply(status, json, text, delay))

    def handle(self, method: str, path: str, handler: Handler):
        self.replies.setdefault((method, path), []).append(handler)

    def calls(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        recorded = RecordedRequest(
            method=request.method,
            path=request.path,
            query=dict(request.query),
            headers=dict(request.headers),
        )
        if request.content_type == "application/json":
            recorded.json = await request.json()
        elif request.content_type == "multipart/form-data":
            form = await request.post()
            for name, value in form.items():
                if isinstance(value, web.FileField):
                    recorded.files[name] = (value.filename, value.file.read())
        self.requests.append(recorded)

        queue = self.replies.get((request.method, request.path))
        if not queue:
            return web.json_response({"message": "Not Found", "statusCode": 404}, status=404)
        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if not isinstance(reply, Reply):
            return await reply(recorded)

        if reply.delay:
            await asyncio.sleep(reply.delay)
        if reply.status == 204:
            return web.Response(status=204)
        if reply.text is not None:
            return web.Response(status=reply.status, text=reply.text, content_type="text/html")
        return web.json_response(reply.json, status=reply.status)


@pytest_asyncio.fixture
async def fake_api():
    api = FakeApi()
    server = TestServer(api.app)
    await server.start_server()
    api.base_url = f"http://{server.host}:{server.port}"
    yield api
    await server.close()


@pytest.fixture
def store():
    """In-memory store"""
    return KeyValueStore()


@pytest.fixture
def client(fake_api, store):
    return ApiClient(base_url=fake_api.base_url, store=store)


@pytest.fixture
def context(fake_api, store):
    return create_app_context(base_url=fake_api.base_url, store=store).initialize()


@pytest.fixture
def user_payload():
    return {
        "id": 7,
        "name": "Rahim Uddin",
        "email": "rahim@example.com",
        "role": "user",
        "phone": "01700000000",
        "dateOfBirth": "1990-04-12",
        "image": "rahim.jpg",
    }


@pytest.fixture
def medicines_payload():
    return [
        {"id": 1, "name": "Napa", "nameBn": "নাপা", "brand": "Beximco", "similarity": 0.93,
         "images": ["napa-1.jpg"], "genericName": "Paracetamol"},
        {"id": 2, "name": "Ace", "brand": "Square", "similarity": 0.71, "images": []},
    ]


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "strip.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path
