"""
Tests for the HTTP front end.
"""

import base64
import pytest
from fastapi.testclient import TestClient

from chat_server.main import create_app
from e2e import ChatContext, Envelope
from cryptolab import codec


@pytest.fixture()
def context():
    return ChatContext()


@pytest.fixture()
def client(context):
    with TestClient(create_app(context)) as test_client:
        yield test_client


def test_startup_creates_demo_roster(client):
    response = client.get("/api/participants")

    assert response.status_code == 200
    assert response.json()["participants"] == ["Bob", "Alice", "Eve", "Julia"]


def test_create_participant_is_idempotent(client, context):
    first = client.post("/api/participants", json={"identity": "Regina"}).json()
    second = client.post("/api/participants", json={"identity": "Regina"}).json()

    assert first == second
    assert bytes.fromhex(first["public_key"]) == context.participant("Regina").public_key_bytes()


def test_create_participant_rejects_empty_identity(client):
    assert client.post("/api/participants", json={"identity": ""}).status_code == 400


def test_public_key_lookup(client, context):
    response = client.get("/api/participants/Alice/key")

    assert response.status_code == 200
    assert response.json()["public_key"] == context.participant("Alice").public_key_bytes().hex()
    assert client.get("/api/participants/Nobody/key").status_code == 404


def test_send_and_read_chat(client):
    response = client.post("/api/chats/Alice/Bob/messages", json={"text": "hello"})
    assert response.status_code == 200
    ciphertext = bytes.fromhex(response.json()["ciphertext"])
    assert b"hello" not in ciphertext

    bob_view = client.get("/api/chats/Bob/Alice").json()
    alice_view = client.get("/api/chats/Alice/Bob").json()

    expected = [{"sender": "Alice", "text": "hello", "failed": False}]
    assert bob_view["participants"] == ["Bob", "Alice"]
    assert bob_view["messages"] == expected
    assert alice_view["messages"] == expected


def test_chat_with_unknown_participant(client):
    assert client.get("/api/chats/Alice/Nobody").status_code == 404
    assert client.post("/api/chats/Nobody/Alice/messages", json={"text": "hi"}).status_code == 404


def test_chat_with_yourself_is_rejected(client, context):
    response = client.post("/api/chats/Alice/Alice/messages", json={"text": "hi"})

    assert response.status_code == 400
    assert client.get("/api/chats/Alice/Alice").status_code == 400
    assert context.participant("Alice").chats() == []


def test_failed_decryption_rendered_with_fallback(client, context):
    forged = Envelope(ciphertext=codec.seal(b"forged", b"\x02" * 32), sender="Eve", recipient="Bob")
    context.transport.publish(forged)

    messages = client.get("/api/chats/Bob/Eve").json()["messages"]

    assert messages == [{"sender": "Eve", "text": "Decryption Error", "failed": True}]


def test_wire_log_shows_only_ciphertext(client):
    client.post("/api/chats/Alice/Bob/messages", json={"text": "top secret"})

    envelopes = client.get("/api/wire").json()["envelopes"]

    assert len(envelopes) == 1
    assert envelopes[0]["from"] == "Alice" and envelopes[0]["to"] == "Bob"
    assert b"top secret" not in bytes.fromhex(envelopes[0]["ciphertext"])


def test_rename(client, context):
    response = client.post("/api/participants/Alice/rename", json={"new_identity": "Alicia"})

    assert response.status_code == 200
    assert response.json() == {"identity": "Alicia"}
    assert client.get("/api/participants/Alice/key").status_code == 404
    assert client.get("/api/participants/Alicia/key").status_code == 200

    assert client.post("/api/participants/Alicia/rename", json={"new_identity": "Bob"}).status_code == 409
    assert client.post("/api/participants/Nobody/rename", json={"new_identity": "X"}).status_code == 404


def test_hash_tool(client):
    response = client.post("/api/tools/hash", json={"text": "abc", "algorithm": "SHA256"})

    assert response.status_code == 200
    assert response.json() == {
        "algorithm": "sha256",
        "digest": "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
        "insecure": False
    }
    assert client.post("/api/tools/hash", json={"text": "abc", "algorithm": "md5"}).json()["insecure"]
    assert client.post("/api/tools/hash", json={"text": "abc", "algorithm": "crc32"}).status_code == 400


def test_symmetric_tools(client):
    token = client.post("/api/tools/encrypt", json={"passphrase": "key", "text": "Lorem ipsum"}).json()["ciphertext"]

    ok = client.post("/api/tools/decrypt", json={"passphrase": "key", "text": token})
    wrong = client.post("/api/tools/decrypt", json={"passphrase": "other", "text": token})

    assert ok.json() == {"plaintext": "Lorem ipsum"}
    assert wrong.status_code == 400


def test_sign_and_verify_tools(client):
    signed = client.post("/api/tools/sign", json={"text": "hello"}).json()
    signature, public_key = signed["signature"], signed["public_key"]

    valid = client.post("/api/tools/verify", json={"text": "hello", "signature": signature, "public_key": public_key})
    modified = client.post("/api/tools/verify", json={"text": "hellO", "signature": signature, "public_key": public_key})

    assert len(base64.b64decode(signature)) == 64
    assert valid.json() == {"valid": True}
    assert modified.json() == {"valid": False}


def test_signing_key_rotation(client):
    old = client.post("/api/tools/sign", json={"text": "hello"}).json()

    new_public = client.post("/api/tools/sign/keys").json()["public_key"]

    assert new_public != old["public_key"]
    check = client.post("/api/tools/verify",
                        json={"text": "hello", "signature": old["signature"], "public_key": new_public})
    assert check.json() == {"valid": False}


def test_verify_rejects_malformed_input(client):
    response = client.post("/api/tools/verify", json={"text": "x", "signature": "!!", "public_key": "zz"})

    assert response.status_code == 400
