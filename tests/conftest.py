import time

import jwt
import pytest
from pydantic import SecretStr

from tei_viewer_server.config import settings
from tei_viewer_server.tei.parser import parse_tei

# Test secrets
TEST_AUTH_SECRET = "test-secret-auth-provider-must-be-long-enough"
TEST_STORAGE_SECRET = "test-secret-storage-backend-must-be-long-enough"

settings.auth_jwt_secret = SecretStr(TEST_AUTH_SECRET)
settings.storage_jwt_secret = SecretStr(TEST_STORAGE_SECRET)
settings.jwt_algo = "HS256"


SAMPLE_TEI = """<?xml version="1.0" encoding="UTF-8"?>
<TEI xmlns="http://www.tei-c.org/ns/1.0">
  <teiHeader>
    <fileDesc>
      <titleStmt>
        <title type="sub">Selected verses</title>
        <title type="main">Thebaid, Book 5</title>
        <author>Statius</author>
        <editor>A. Editor</editor>
      </titleStmt>
      <publicationStmt>
        <date>2024</date>
      </publicationStmt>
    </fileDesc>
    <profileDesc>
      <langUsage>
        <language ident="it" ana="target">Italian</language>
        <language ident="la" ana="source">Latin</language>
      </langUsage>
    </profileDesc>
  </teiHeader>
  <text type="source" xml:lang="la" xml:id="la">
    <body>
      <seg xml:id="la.5.335">
        <l xml:id="Theb.5.335"><w xml:id="w1">Iamque<anchor xml:id="a1"/></w> <w xml:id="w2">dies</w></l>
        <l xml:id="Theb.5.336"><w xml:id="w3">aderat</w></l>
        <l xml:id="la.note">extra</l>
      </seg>
      <seg xml:id="la.intro">Prooemium</seg>
    </body>
  </text>
  <text type="translation" xml:lang="it" xml:id="it">
    <body>
      <seg xml:id="it.5.335">E già <lb/> il giorno   era giunto</seg>
      <seg xml:id="it.5.10">Prima riga</seg>
    </body>
  </text>
  <text type="commentary" xml:lang="it" xml:id="comm">
    <body>
      <div>
        <seg xml:id="comm.5.335">Nota</seg>
      </div>
    </body>
  </text>
  <text>
    <body>
      <seg>untitled</seg>
    </body>
  </text>
</TEI>
"""


def create_identity_token(
    sub="user-123",
    issuer=None,
    audience=None,
    expired=False,
    secret=TEST_AUTH_SECRET,
    **extra_claims,
):
    now = int(time.time())
    iat = now - 3600 if expired else now
    exp = iat - 10 if expired else now + 300

    payload = {
        "iss": issuer or settings.auth_jwt_issuer,
        "aud": audience or settings.auth_jwt_audience,
        "iat": iat,
        "exp": exp,
        "sub": sub,
    }
    payload.update(extra_claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def sample_xml():
    return SAMPLE_TEI


@pytest.fixture
def sample_document():
    return parse_tei(SAMPLE_TEI)


@pytest.fixture
def auth_headers():
    token = create_identity_token(name="Test User", email="test@example.org")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_identity_token():
    return create_identity_token
