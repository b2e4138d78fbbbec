"""
FastAPI server hosting the crypto playground.

This server:
- Creates demo participants and exposes their public keys
- Sends chat messages between participants (encrypted end to end in-process)
- Shows the wire log, i.e. what an eavesdropper on the transport would see
- Offers the hashing, symmetric encryption and signing tools of the playground
"""

import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from cryptolab import hashing, signing, symmetric
from cryptolab.primitives import serialize_public_key
from e2e import ChatContext, ChatSession, IdentityConflictError, Settings, UnknownIdentityError

logger = logging.getLogger(__name__)


# Pydantic models for API
class ParticipantCreate(BaseModel):
    identity: str


class ParticipantRename(BaseModel):
    new_identity: str


class MessageSend(BaseModel):
    text: str


class HashRequest(BaseModel):
    text: str
    algorithm: str = hashing.DEFAULT_ALGORITHM


class SymmetricRequest(BaseModel):
    passphrase: str
    text: str


class SignRequest(BaseModel):
    text: str


class VerifyRequest(BaseModel):
    text: str
    signature: str
    public_key: str


def _render_chat(chat: ChatSession, fallback: str) -> dict:
    return {
        "participants": [chat.me.identity, chat.them.identity],
        "messages": [
            {
                "sender": entry.sender.identity,
                "text": entry.display_text(fallback),
                "failed": entry.failed
            }
            for entry in chat.messages
        ]
    }


def create_app(context: Optional[ChatContext] = None) -> FastAPI:
    """
    Build the API around a chat context.

    Args:
        context: Chat world to serve (a fresh one with the demo roster if None)

    Returns:
        Configured FastAPI application
    """
    if context is None:
        context = ChatContext(Settings.from_env())
    settings = context.settings
    signing_keys = {}

    def _rotate_signing_keys():
        signing_keys["private"], signing_keys["public"] = signing.generate_signing_keypair()

    _rotate_signing_keys()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        roster = context.demo_participants()
        logger.info("Demo participants ready: %s", ", ".join(p.identity for p in roster))
        yield
        logger.info("Server shutting down")

    app = FastAPI(
        title="Crypto Playground",
        description="Hashing, signing and end-to-end encrypted chat over an in-process transport",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.context = context

    def _existing(identity: str):
        try:
            return context.registry.require(identity)
        except UnknownIdentityError:
            raise HTTPException(status_code=404, detail=f"Unknown participant: {identity}")

    def _chat(me: str, them: str):
        try:
            return _existing(me).get_chat(_existing(them))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/api/participants")
    async def list_participants():
        """List all participants"""
        return {"participants": context.registry.identities()}

    @app.post("/api/participants")
    async def create_participant(data: ParticipantCreate):
        """
        Get or create a participant.

        A new participant generates its keypair and publishes the public key.
        """
        if not data.identity:
            raise HTTPException(status_code=400, detail="Identity must not be empty")
        participant = context.participant(data.identity)
        return {
            "identity": participant.identity,
            "public_key": participant.public_key_bytes().hex()
        }

    @app.get("/api/participants/{identity}/key")
    async def get_public_key(identity: str):
        """Look up a public key in the key directory"""
        public_key = context.directory.lookup(identity)
        if public_key is None:
            raise HTTPException(status_code=404, detail=f"No key registered for {identity}")
        return {"identity": identity, "public_key": serialize_public_key(public_key).hex()}

    @app.post("/api/participants/{identity}/rename")
    async def rename_participant(identity: str, data: ParticipantRename):
        """Rename a participant; its keypair stays the same"""
        participant = _existing(identity)
        if not data.new_identity:
            raise HTTPException(status_code=400, detail="Identity must not be empty")
        try:
            participant.rename(data.new_identity)
        except IdentityConflictError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"identity": participant.identity}

    @app.get("/api/chats/{me}/{them}")
    async def get_chat(me: str, them: str):
        """Conversation between two participants, from me's side"""
        chat = _chat(me, them)
        return _render_chat(chat, settings.decryption_error_text)

    @app.post("/api/chats/{me}/{them}/messages")
    async def send_message(me: str, them: str, data: MessageSend):
        """Encrypt and send a message; returns the ciphertext that went over the wire"""
        chat = _chat(me, them)
        envelope = chat.send(data.text)
        return {"ciphertext": envelope.ciphertext.hex()}

    @app.get("/api/wire")
    async def wire_log():
        """Recent envelopes exactly as the transport carried them"""
        return {
            "envelopes": [
                {
                    "from": envelope.sender,
                    "to": envelope.recipient,
                    "ciphertext": envelope.ciphertext.hex()
                }
                for envelope in context.wire_log
            ]
        }

    @app.post("/api/tools/hash")
    async def hash_tool(data: HashRequest):
        """Hash text with the selected algorithm"""
        try:
            digest = hashing.hash_text(data.text, data.algorithm)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "algorithm": data.algorithm.lower(),
            "digest": digest,
            "insecure": hashing.is_insecure(data.algorithm)
        }

    @app.post("/api/tools/encrypt")
    async def encrypt_tool(data: SymmetricRequest):
        """Encrypt text under a key derived from a passphrase"""
        key = symmetric.key_from_passphrase(data.passphrase)
        return {"ciphertext": symmetric.encrypt_text(data.text, key)}

    @app.post("/api/tools/decrypt")
    async def decrypt_tool(data: SymmetricRequest):
        """Decrypt base64 ciphertext under a key derived from a passphrase"""
        key = symmetric.key_from_passphrase(data.passphrase)
        plaintext = symmetric.decrypt_text(data.text, key)
        if plaintext is None:
            raise HTTPException(status_code=400, detail="Decryption failed")
        return {"plaintext": plaintext}

    @app.post("/api/tools/sign")
    async def sign_tool(data: SignRequest):
        """Sign text with the server's current Ed25519 key"""
        signature = signing.sign(data.text.encode("utf-8"), signing_keys["private"])
        return {
            "signature": base64.b64encode(signature).decode("ascii"),
            "public_key": signing.serialize_signing_public_key(signing_keys["public"]).hex()
        }

    @app.post("/api/tools/sign/keys")
    async def rotate_signing_keys():
        """Replace the signing keypair"""
        _rotate_signing_keys()
        return {"public_key": signing.serialize_signing_public_key(signing_keys["public"]).hex()}

    @app.post("/api/tools/verify")
    async def verify_tool(data: VerifyRequest):
        """Check a signature against text and a public key"""
        try:
            public_key = signing.deserialize_signing_public_key(bytes.fromhex(data.public_key))
            signature = base64.b64decode(data.signature, validate=True)
        except (ValueError, binascii.Error) as e:
            raise HTTPException(status_code=400, detail=f"Malformed input: {e}")
        return {"valid": signing.verify(signature, data.text.encode("utf-8"), public_key)}

    return app


app = create_app()


def main():
    """Run the server with uvicorn"""
    import uvicorn
    settings = app.state.context.settings
    logging.basicConfig(level=settings.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
