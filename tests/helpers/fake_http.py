from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Sequence, Union

import orjson


class FakeResponse:
    """Stand-in for ``aiohttp.ClientResponse`` used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        body: bytes = b"",
        *,
        headers: Optional[Dict[str, str]] = None,
        chunk_size: int = 4,
        fail_after_chunks: Optional[int] = None,
        error: Optional[BaseException] = None,
    ):
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.chunk_size = chunk_size
        self.fail_after_chunks = fail_after_chunks
        self.error = error
        self.content = SimpleNamespace(iter_chunked=self._iter_chunked)

    @classmethod
    def json(cls, payload, status: int = 200) -> "FakeResponse":
        return cls(status=status, body=orjson.dumps(payload))

    @classmethod
    def redirect(cls, location: Optional[str], status: int = 302) -> "FakeResponse":
        headers = {"Location": location} if location is not None else {}
        return cls(status=status, headers=headers)

    async def _iter_chunked(self, _size: int):
        for index in range(0, len(self.body), self.chunk_size):
            if self.fail_after_chunks is not None and index // self.chunk_size >= self.fail_after_chunks:
                raise self.error
            yield self.body[index : index + self.chunk_size]

    async def read(self) -> bytes:
        return self.body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


Responder = Callable[[str, Dict[str, str]], Union[FakeResponse, BaseException]]


class FakeSession:
    """Records every GET and replies from a queue (or a responder callable)."""

    def __init__(self, responses: Union[Sequence[Union[FakeResponse, BaseException]], Responder]):
        self._responder = responses if callable(responses) else None
        self._queue: List[Union[FakeResponse, BaseException]] = [] if callable(responses) else list(responses)
        self.requests: List[SimpleNamespace] = []
        self.factory_kwargs: List[dict] = []
        self.closed = False

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> FakeResponse:
        sent = dict(headers or {})
        self.requests.append(SimpleNamespace(url=url, headers=sent, kwargs=kwargs))
        reply = self._responder(url, sent) if self._responder is not None else self._queue.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.closed = True
        return False


def session_factory_for(*sessions: FakeSession) -> Callable[..., FakeSession]:
    """Factory handing out ``sessions`` in order; the last one is reused."""
    pending = list(sessions)

    def factory(**kwargs) -> FakeSession:
        session = pending.pop(0) if len(pending) > 1 else pending[0]
        session.factory_kwargs.append(kwargs)
        return session

    return factory


