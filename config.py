import logging
import os
import yaml
import keyring

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from ``level`` or the ``LOG_LEVEL`` variable."""
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class YamlConfig:
    """Settings file mirror of the ``settings`` table.

    With ``ENCRYPT_SETTINGS=1`` the values of ``SENSITIVE_KEYS`` live in the
    system keyring and the file only records ``true`` as a placeholder.
    """

    SENSITIVE_KEYS = frozenset({"pt_chat_api_key"})
    KEYRING_SERVICE = "gymtracker"

    def __init__(self, path: str = "settings.yaml", encrypt: bool | None = None) -> None:
        self.path = path
        if encrypt is None:
            encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"
        self.encrypt = encrypt

    def _read_file(self) -> dict:
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a mapping of settings")
        return data

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        data = self._read_file()
        if not self.encrypt:
            return data
        for key in data.keys() & self.SENSITIVE_KEYS:
            secret = keyring.get_password(self.KEYRING_SERVICE, key)
            if secret is None:
                logger.warning("no keyring entry for %s, ignoring it", key)
                del data[key]
            else:
                data[key] = secret
        return data

    def save(self, data: dict) -> None:
        out = dict(data)
        if self.encrypt:
            for key in out.keys() & self.SENSITIVE_KEYS:
                keyring.set_password(self.KEYRING_SERVICE, key, str(out[key]))
                out[key] = True
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f, allow_unicode=True, sort_keys=True)
