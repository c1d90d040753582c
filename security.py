import json
import hmac
import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import config

# Simple JWT (HS256) without external deps

def _b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()

def _b64url_decode(s: str) -> bytes:
    pad = '=' * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)

def _sign(signing_input: bytes, secret: str) -> str:
    return _b64url_encode(hmac.new(secret.encode(), signing_input, hashlib.sha256).digest())

def jwt_encode(payload: dict, secret: str) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64url_encode(json.dumps(header, separators=(',', ':')).encode())
    payload_b64 = _b64url_encode(json.dumps(payload, default=str, separators=(',', ':')).encode())
    signing_input = f"{header_b64}.{payload_b64}".encode()
    return f"{header_b64}.{payload_b64}.{_sign(signing_input, secret)}"

def jwt_decode(token: str, secret: str) -> dict:
    try:
        header_b64, payload_b64, sig_b64 = token.split('.')
    except ValueError:
        raise ValueError("Malformed token")
    signing_input = f"{header_b64}.{payload_b64}".encode()
    if not hmac.compare_digest(_sign(signing_input, secret), sig_b64):
        raise ValueError("Invalid signature")
    payload = json.loads(_b64url_decode(payload_b64))
    if 'exp' in payload and datetime.now(timezone.utc).timestamp() > payload['exp']:
        raise ValueError("Token expired")
    return payload

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": int(expire.timestamp())})
    return jwt_encode(to_encode, config.JWT_SECRET)

# Salted PBKDF2, stored as "<salt>$<hex digest>"

def hash_password(password: str) -> str:
    salt = secrets.token_hex(8)
    digest = hashlib.pbkdf2_hmac("sha256", (password + config.PWD_SALT).encode(), salt.encode(), 100_000).hex()
    return f"{salt}${digest}"

def verify_password(password: str, hashed: str) -> bool:
    salt, _, digest = hashed.partition("$")
    if not digest:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", (password + config.PWD_SALT).encode(), salt.encode(), 100_000).hex()
    return hmac.compare_digest(candidate, digest)
