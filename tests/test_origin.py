import pytest

from conftest import add_store, broken_session_factory, DASHBOARD_ORIGIN, SHOP_DOMAIN
from app.core.origin import OriginPolicy, OriginCheckError, normalize_host
from app.models.store import StoreStatus


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://www.Foo.com/", "foo.com"),
        ("foo.com", "foo.com"),
        ("http://foo.com:443/path", "foo.com"),
        ("  https://shop.example.com/cart?x=1  ", "shop.example.com"),
        ("WWW.SHOP.MYSHOPIFY.COM", "shop.myshopify.com"),
        ("https://shop.example.com.", "shop.example.com"),
        ("", ""),
        (None, ""),
        ("   ", ""),
    ],
)
def test_normalize_host(value, expected):
    assert normalize_host(value) == expected


def test_normalize_host_is_idempotent():
    for value in ("https://www.Foo.com/", "http://foo.com:8080/a/b", "shop.example.com"):
        once = normalize_host(value)
        assert normalize_host(once) == once


def test_allow_list_matches_exact_origin():
    policy = OriginPolicy([DASHBOARD_ORIGIN + "/", " ", ""])

    assert policy.allowed_origins == (DASHBOARD_ORIGIN,)
    assert policy.is_allow_listed(DASHBOARD_ORIGIN)
    assert policy.is_allow_listed(DASHBOARD_ORIGIN + "/")
    assert not policy.is_allow_listed("https://evil.quell.test")
    assert not policy.is_allow_listed(None)


@pytest.mark.anyio
async def test_origin_allowed_for_registered_store(session_factory):
    await add_store(session_factory)
    policy = OriginPolicy([DASHBOARD_ORIGIN])

    assert await policy.is_origin_allowed(None, session_factory)
    assert await policy.is_origin_allowed(DASHBOARD_ORIGIN, session_factory)
    assert await policy.is_origin_allowed(f"https://www.{SHOP_DOMAIN}", session_factory)
    assert not await policy.is_origin_allowed("https://unknown.example.com", session_factory)


@pytest.mark.anyio
async def test_origin_rejected_for_disconnected_store(session_factory):
    await add_store(session_factory, status=StoreStatus.disconnected)
    policy = OriginPolicy()

    assert not await policy.is_origin_allowed(f"https://{SHOP_DOMAIN}", session_factory)


@pytest.mark.anyio
async def test_lookup_failure_raises():
    policy = OriginPolicy()

    with pytest.raises(OriginCheckError):
        await policy.is_origin_allowed("https://shop.example.com", broken_session_factory)
