import asyncio

from src.infrastructure import service_provider


def test_concurrent_first_requests_share_one_http_client():
    async def scenario():
        await service_provider.close_http_client()
        clients = await asyncio.gather(*(service_provider.get_http_client() for _ in range(10)))
        shared = service_provider._http_client
        await service_provider.close_http_client()
        return clients, shared

    clients, shared = asyncio.run(scenario())

    assert shared is not None
    assert all(client is shared for client in clients)
    assert shared.is_closed


def test_closed_client_is_replaced():
    async def scenario():
        first = await service_provider.get_http_client()
        await service_provider.close_http_client()
        second = await service_provider.get_http_client()
        await service_provider.close_http_client()
        return first, second

    first, second = asyncio.run(scenario())

    assert first is not second
    assert first.is_closed
