import pytest

import validate
from policy import UidPolicyChecker
from providers import StaticNamespace


NAMESPACE = "uid-webhook"
UID_MAP_NAME = "test-uid-mapping"

UID_MAP = {
    "builder": "1000",
    "alice": "1500",
    "blank": "",
    "broken": "ten",
}


class FakeProvider:
    def __init__(self, request_timeout=None):
        self.request_timeout = request_timeout

    def uid_map(self, namespace, name):
        assert namespace == NAMESPACE
        assert name == UID_MAP_NAME
        return dict(UID_MAP)


class FailingNamespace:
    def namespace(self):
        raise OSError("no such file")


@pytest.fixture()
def checker():
    return UidPolicyChecker(FakeProvider, StaticNamespace(NAMESPACE), UID_MAP_NAME)


@pytest.fixture()
def app():
    app = validate.create_app(
        PROVIDER=FakeProvider,
        NAMESPACE=NAMESPACE,
        UID_MAP_NAME=UID_MAP_NAME,
        TESTING=True,
    )
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()
