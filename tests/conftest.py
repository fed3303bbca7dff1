import os

# Must be set before taskboard.config is imported
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import grpc
import httpx
import pytest

from taskboard.dependencies import AppContext
from taskboard.harness.clients import RestClient, RpcClient
from taskboard.main import create_app
from taskboard.rpc.server import create_server
from taskboard.stores.memory import MemoryStore


def make_context() -> AppContext:
    return AppContext(store=MemoryStore())


@pytest.fixture
def context():
    return make_context()


@pytest.fixture
async def client(context):
    app = create_app(context)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def rpc_channel(context):
    server, port = create_server(context, "127.0.0.1:0")
    await server.start()
    channel = grpc.aio.insecure_channel(f"127.0.0.1:{port}")
    yield channel
    await channel.close()
    await server.stop(None)


@pytest.fixture
def rpc(rpc_channel):
    return RpcClient(channel=rpc_channel)


@pytest.fixture
def rest(client):
    return RestClient(http=client)


async def signup(client: httpx.AsyncClient, email="user@example.com", password="password123"):
    """Create a user over REST and return (user, auth headers)."""
    response = await client.post("/users", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    login = await client.post("/sessions", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return response.json(), {"Authorization": f"Bearer {login.json()['token']}"}
