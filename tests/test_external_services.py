import httpx
import pytest

from marzan_loyalty.errors import ExternalServiceError, NotFoundError, ValidationError
from marzan_loyalty.main import app
from marzan_loyalty.services.image_host import ImgurImageHost
from marzan_loyalty.services.postal_service import PostalLookup
from marzan_loyalty.services.session_events import SessionChange, SessionEvent, SessionEventBus


VIACEP = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ─── Postal lookup ────────────────────────────────────────────────
def test_postal_lookup_maps_fields():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=VIACEP)

    lookup = PostalLookup("https://viacep.test/ws", client=_client(handler))

    assert lookup.lookup("01310100") == {
        "cep": "01310-100",
        "street": "Avenida Paulista",
        "neighborhood": "Bela Vista",
        "city": "São Paulo",
        "state": "SP",
    }
    assert seen == ["https://viacep.test/ws/01310100/json/"]


def test_postal_lookup_not_found():
    lookup = PostalLookup("https://viacep.test/ws", client=_client(lambda r: httpx.Response(200, json={"erro": True})))
    with pytest.raises(NotFoundError):
        lookup.lookup("99999-999")


def test_postal_lookup_transport_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    lookup = PostalLookup("https://viacep.test/ws", client=_client(handler))
    with pytest.raises(ExternalServiceError):
        lookup.lookup("01310-100")


def test_postal_lookup_http_error():
    lookup = PostalLookup("https://viacep.test/ws", client=_client(lambda r: httpx.Response(500)))
    with pytest.raises(ExternalServiceError):
        lookup.lookup("01310-100")


def test_postal_lookup_validates_cep():
    lookup = PostalLookup("https://viacep.test/ws", client=_client(lambda r: httpx.Response(200, json=VIACEP)))
    with pytest.raises(ValidationError):
        lookup.lookup("123")


def test_postal_endpoint(client):
    app.state.postal_lookup = PostalLookup(
        "https://viacep.test/ws", client=_client(lambda r: httpx.Response(200, json=VIACEP))
    )

    r = client.get("/postal/01310-100")
    assert r.status_code == 200
    assert r.json()["street"] == "Avenida Paulista"


# ─── Image host ───────────────────────────────────────────────────
def test_image_upload_returns_link():
    def handler(request):
        assert request.headers["Authorization"] == "Client-ID abc"
        assert b"fake-bytes" in request.read()
        return httpx.Response(200, json={"success": True, "data": {"link": "https://i.imgur.com/x.png"}})

    host = ImgurImageHost("abc", upload_url="https://imgur.test/3/image", client=_client(handler))
    assert host.upload(b"fake-bytes", "x.png", "image/png") == "https://i.imgur.com/x.png"


def test_image_upload_rejected():
    def handler(request):
        return httpx.Response(400, json={"success": False, "data": {"error": "bad image"}})

    host = ImgurImageHost("abc", upload_url="https://imgur.test/3/image", client=_client(handler))
    with pytest.raises(ExternalServiceError):
        host.upload(b"x", "x.png")


def test_image_upload_needs_client_id():
    host = ImgurImageHost("", upload_url="https://imgur.test/3/image", client=_client(lambda r: httpx.Response(200)))
    with pytest.raises(ExternalServiceError):
        host.upload(b"x", "x.png")


def test_upload_endpoint_appends_to_gallery(client, admin_headers):
    links = iter(["https://i.imgur.com/u1.png", "https://i.imgur.com/u2.png"])

    def handler(request):
        return httpx.Response(200, json={"success": True, "data": {"link": next(links)}})

    app.state.image_host = ImgurImageHost("abc", upload_url="https://imgur.test/3/image", client=_client(handler))

    product = client.post(
        "/admin/products",
        json={"name": "Pão de Mel", "price": 7, "category": "doces", "image_urls": ["https://img/p.png"]},
        headers=admin_headers,
    ).json()

    r = client.post(
        f"/admin/products/{product['id']}/images/upload",
        files=[
            ("files", ("u1.png", b"one", "image/png")),
            ("files", ("u2.png", b"two", "image/png")),
        ],
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert [img["image_url"] for img in r.json()] == [
        "https://img/p.png",
        "https://i.imgur.com/u1.png",
        "https://i.imgur.com/u2.png",
    ]


# ─── Session events ───────────────────────────────────────────────
def test_event_bus_unsubscribe_and_failing_subscriber():
    bus = SessionEventBus()
    received = []

    def broken(change):
        raise RuntimeError("subscriber bug")

    bus.subscribe(broken)
    unsubscribe = bus.subscribe(received.append)

    change = bus.emit(SessionEvent.SIGNED_IN, user_id="u1", email="a@example.com")
    assert isinstance(change, SessionChange)
    assert received == [change]

    unsubscribe()
    bus.emit(SessionEvent.SIGNED_OUT, user_id="u1")
    assert received == [change]
