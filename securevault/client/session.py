import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = Path.home() / ".securevault" / "session.json"


class PortalSession:
    """Who is signed in, held explicitly instead of in module globals.

    ``load()`` is called once on start, ``clear()`` on logout. Pass the
    session to whatever needs the token or the current user.
    """

    def __init__(self, path: str | os.PathLike | None = DEFAULT_SESSION_PATH):
        self.path = Path(path) if path is not None else None
        self.token: str | None = None
        self.user: dict | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def start(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        self.save()

    def load(self) -> "PortalSession":
        if self.path is None or not self.path.exists():
            return self
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return self
        self.token = data.get("token")
        self.user = data.get("user")
        return self

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": self.token, "user": self.user}), encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.path is not None and self.path.exists():
            self.path.unlink()
