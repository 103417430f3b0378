# src/focus_companion/connectors/matrix_client.py

from __future__ import annotations

"""
Matrix login for the focus bot.

The bot talks plain text in unencrypted rooms only; there is no E2EE store.
After the first password login the credentials are cached in
<matrix_store_path>/session.json so later starts skip the password.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from nio import AsyncClient, AsyncClientConfig, LoginResponse

logger = logging.getLogger(__name__)

SESSION_FILENAME = "session.json"


@dataclass(slots=True, frozen=True)
class MatrixCredentials:
    user_id: str
    device_id: str
    access_token: str

    @classmethod
    def load(cls, path: Path) -> MatrixCredentials | None:
        """None when the file is missing, unreadable or incomplete."""
        try:
            data = json.loads(path.read_text("utf-8"))
            creds = cls(
                user_id=str(data["user_id"]),
                device_id=str(data["device_id"]),
                access_token=str(data["access_token"]),
            )
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unusable Matrix credentials in %s: %r", path, e)
            return None

        if not (creds.user_id and creds.device_id and creds.access_token):
            logger.warning("Ignoring incomplete Matrix credentials in %s", path)
            return None
        return creds

    def save(self, path: Path) -> None:
        # Holds an access token: write atomically and keep it owner-only.
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(self)), "utf-8")
        os.replace(tmp, path)
        try:
            os.chmod(path, 0o600)
        except OSError:
            logger.debug("chmod failed for %s", path, exc_info=True)


def _setting(settings, name: str) -> str:
    return (getattr(settings, name, "") or "").strip()


async def login_matrix(settings) -> AsyncClient | None:
    homeserver = _setting(settings, "matrix_homeserver")
    user_id = _setting(settings, "matrix_user_id")
    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set FOCUS_MATRIX_HOMESERVER and FOCUS_MATRIX_USER_ID")
        return None

    session_file = Path(getattr(settings, "matrix_store_path", ".local/focus/matrix_store")) / SESSION_FILENAME
    client = AsyncClient(
        homeserver,
        user_id,
        config=AsyncClientConfig(encryption_enabled=False, store_sync_tokens=False),
    )

    creds = MatrixCredentials.load(session_file)
    if creds is not None:
        client.restore_login(creds.user_id, creds.device_id, creds.access_token)
        logger.info("Matrix credentials restored for %s (device %s)", creds.user_id, creds.device_id)
        return client

    password = _setting(settings, "matrix_password")
    if not password:
        logger.error("No cached Matrix credentials; set FOCUS_MATRIX_PASSWORD once to log in.")
        await client.close()
        return None

    resp = await client.login(password=password, device_name=f"{getattr(settings, 'app_name', 'focus')} focus bot")
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    creds = MatrixCredentials(user_id=resp.user_id, device_id=resp.device_id, access_token=resp.access_token)
    try:
        creds.save(session_file)
        logger.info("Matrix credentials cached in %s", session_file)
    except OSError:
        logger.exception("Could not cache Matrix credentials in %s", session_file)
    return client
