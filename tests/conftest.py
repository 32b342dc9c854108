import pytest

from tests.providers import ProviderStub, by_city


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub(by_city)
