# tests/test_matrix_client.py

from __future__ import annotations

import json
import os
from pathlib import Path
from types import SimpleNamespace

import pytest

from focus_companion.connectors.matrix_client import SESSION_FILENAME, MatrixCredentials, login_matrix


def test_credentials_save_and_load(tmp_path: Path) -> None:
    path = tmp_path / "store" / SESSION_FILENAME
    creds = MatrixCredentials(user_id="@bot:example.org", device_id="DEV1", access_token="tok")

    creds.save(path)

    assert MatrixCredentials.load(path) == creds
    assert not path.with_suffix(".tmp").exists()
    if os.name == "posix":
        assert path.stat().st_mode & 0o777 == 0o600


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2]",
        json.dumps({"user_id": "@bot:example.org", "device_id": "DEV1"}),
        json.dumps({"user_id": "@bot:example.org", "device_id": "", "access_token": "tok"}),
    ],
)
def test_unusable_credentials_are_ignored(tmp_path: Path, content: str) -> None:
    path = tmp_path / SESSION_FILENAME
    path.write_text(content, "utf-8")

    assert MatrixCredentials.load(path) is None


def test_missing_credentials(tmp_path: Path) -> None:
    assert MatrixCredentials.load(tmp_path / SESSION_FILENAME) is None


@pytest.mark.asyncio
async def test_login_requires_homeserver_and_user(tmp_path: Path) -> None:
    settings = SimpleNamespace(matrix_homeserver="", matrix_user_id="@bot:example.org", matrix_store_path=tmp_path)

    assert await login_matrix(settings) is None


@pytest.mark.asyncio
async def test_login_without_credentials_or_password_fails(tmp_path: Path) -> None:
    settings = SimpleNamespace(
        matrix_homeserver="https://matrix.example.org",
        matrix_user_id="@bot:example.org",
        matrix_password="",
        matrix_store_path=tmp_path,
    )

    assert await login_matrix(settings) is None


@pytest.mark.asyncio
async def test_login_restores_cached_credentials(tmp_path: Path) -> None:
    MatrixCredentials(user_id="@bot:example.org", device_id="DEV1", access_token="tok").save(
        tmp_path / SESSION_FILENAME
    )
    settings = SimpleNamespace(
        matrix_homeserver="https://matrix.example.org",
        matrix_user_id="@bot:example.org",
        matrix_password="",
        matrix_store_path=tmp_path,
    )

    client = await login_matrix(settings)

    assert client is not None
    try:
        assert client.access_token == "tok"
        assert client.device_id == "DEV1"
        assert client.user_id == "@bot:example.org"
    finally:
        await client.close()
