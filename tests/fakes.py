"""Stand-ins for the embedding model, the chat model and the web fetcher."""

import hashlib

from langchain_core.messages import AIMessageChunk

_DIM = 16


class FakeEmbedder:
    """Deterministic bag-of-words embedder: identical texts get identical vectors."""

    def __init__(self):
        self.document_calls = 0
        self.query_calls = 0

    @staticmethod
    def _vector(text):
        vec = [0.0] * _DIM
        for word in text.lower().split():
            digest = hashlib.md5(word.encode("utf-8")).digest()
            vec[digest[0] % _DIM] += 1.0
        vec[0] += 0.001
        return vec

    def embed_documents(self, texts):
        self.document_calls += 1
        return [self._vector(t) for t in texts]

    def embed_query(self, text):
        self.query_calls += 1
        return self._vector(text)


class FakeChatModel:
    """Streams a fixed list of tokens and records what it was sent."""

    def __init__(self, tokens=("Hello", ", ", "Mangalore!"), fail_at=None):
        self.tokens = list(tokens)
        self.fail_at = fail_at
        self.calls = []

    async def astream(self, messages):
        self.calls.append(list(messages))
        for i, token in enumerate(self.tokens):
            if self.fail_at == i:
                raise RuntimeError("model unavailable")
            yield AIMessageChunk(content=token)


class FakeWebFetcher:
    def __init__(self, web="result one\nsnippet one", wiki="Mangalore is a port city."):
        self.web = web
        self.wiki = wiki
        self.queries = []
        self.topics = []
        self.closed = False

    async def web_search(self, query):
        self.queries.append(query)
        return self.web

    async def wikipedia_summary(self, topic):
        self.topics.append(topic)
        return self.wiki

    async def aclose(self):
        self.closed = True


class BrokenStream:
    """Async iterator whose first step fails; records whether it was closed."""

    def __init__(self):
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        raise ConnectionError("quota exceeded")

    async def aclose(self):
        self.closed = True


class BrokenChatModel:
    def __init__(self):
        self.stream = BrokenStream()

    def astream(self, messages):
        return self.stream
