import validate


def make_review(username, run_as_user=None, service_account="builder"):
    spec = {"serviceAccountName": service_account, "containers": []}
    if run_as_user is not None:
        spec["securityContext"] = {"runAsUser": run_as_user}

    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": "1234",
            "namespace": "teamA",
            "operation": "CREATE",
            "userInfo": {"username": username, "groups": ["system:authenticated"]},
            "object": {
                "metadata": {"name": "example", "namespace": "teamA"},
                "spec": spec,
            },
        },
    }


def post(client, body):
    return client.post(
        "/validate", headers={"content-type": "application/json"}, json=body
    )


def test_invalid_path(client):
    """We expect a 404 response for invalid paths"""
    res = client.get("/test-path")
    assert res.status_code == 404


def test_invalid_method(client):
    """We expect a 405 ("method not allowed") response if we GET /validate
    instead of POST"""
    res = client.get("/validate")
    assert res.status_code == 405


def test_invalid_media_type(client):
    """We expect a 415 ("unsupported media type") response if our request does
    not have content-type "application/json"."""
    res = client.post("/validate")
    assert res.status_code == 415


def test_health(client):
    """We expect a 200 response from the /healthz endpoint"""
    res = client.get("/healthz")
    assert res.status_code == 200


def test_not_json(client):
    """We expect a 400 ("bad request") response if we submit something that is not
    actually JSON data"""
    res = client.post(
        "/validate",
        headers={"content-type": "application/json"},
        data="Ceci n'est pas JSON",
    )
    assert res.status_code == 400


def test_empty_json(client):
    """We expect a 400 ("bad request") response if we submit a request that does not
    contain required fields."""
    res = post(client, {})
    assert res.status_code == 400


def test_missing_object(client):
    body = make_review("alice")
    del body["request"]["object"]
    res = post(client, body)
    assert res.status_code == 400


def test_response_without_request(client):
    res = post(client, {"response": {"uid": "1234", "allowed": True}})
    assert res.status_code == 500


def test_service_account_allowed(client):
    res = post(client, make_review("system:serviceaccount:teamA:builder", 1000))
    assert res.status_code == 200
    response = res.json["response"]
    assert response["uid"] == "1234"
    assert response["allowed"]
    assert response["status"]["message"] == "Valid uid"
    assert res.json["kind"] == "AdmissionReview"
    assert res.json["apiVersion"] == "admission.k8s.io/v1"


def test_service_account_wrong_uid(client):
    res = post(client, make_review("system:serviceaccount:teamA:builder", 2000))
    assert res.status_code == 200
    response = res.json["response"]
    assert not response["allowed"]
    assert response["status"]["code"] == 403
    assert "expected: 1000" in response["status"]["message"]
    assert "found: 2000" in response["status"]["message"]


def test_user_allowed(client):
    res = post(client, make_review("alice", 1500))
    assert res.json["response"]["allowed"]


def test_user_without_mapping(client):
    res = post(client, make_review("carol", 500))
    response = res.json["response"]
    assert not response["allowed"]
    assert "no UID associated" in response["status"]["message"]


def test_no_run_as_user(client):
    res = post(client, make_review("carol"))
    response = res.json["response"]
    assert response["allowed"]
    assert "code" not in response["status"]


def test_fetch_failure():
    class ErrorProvider:
        def __init__(self, request_timeout=None):
            pass

        def uid_map(self, namespace, name):
            raise Exception("test exception")

    app = validate.create_app(
        PROVIDER=ErrorProvider, NAMESPACE="uid-webhook", TESTING=True
    )
    client = app.test_client()

    res = post(client, make_review("system:serviceaccount:teamA:builder", 1000))
    assert res.status_code == 200
    response = res.json["response"]
    assert not response["allowed"]
    assert "test exception" in response["status"]["message"]


def test_namespace_from_file(tmp_path):
    path = tmp_path / "namespace"
    path.write_text("uid-webhook")
    seen = []

    class RecordingProvider:
        def __init__(self, request_timeout=None):
            self.request_timeout = request_timeout

        def uid_map(self, namespace, name):
            seen.append((namespace, name, self.request_timeout))
            return {"builder": "1000"}

    app = validate.create_app(
        PROVIDER=RecordingProvider,
        NAMESPACE_FILE=str(path),
        REQUEST_TIMEOUT=3,
        TESTING=True,
    )
    client = app.test_client()

    res = post(client, make_review("system:serviceaccount:teamA:builder", 1000))
    assert res.json["response"]["allowed"]
    assert seen == [("uid-webhook", "nfs-pod-access-control-uid-mapping", 3)]


def test_namespace_file_missing(tmp_path):
    app = validate.create_app(
        NAMESPACE_FILE=str(tmp_path / "namespace"),
        TESTING=True,
    )
    client = app.test_client()

    res = post(client, make_review("alice"))
    response = res.json["response"]
    assert not response["allowed"]
    assert "Failed retrieving the webhook namespace" in response["status"]["message"]
