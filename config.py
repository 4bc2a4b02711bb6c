import os
import yaml
import keyring

APP_VERSION = "1.0.0"
KEYRING_SERVICE = "fittrack"


def default_db_path() -> str:
    """Database file from ``DB_PATH``, falling back to ``fitness.db``."""
    return os.environ.get("DB_PATH") or "fitness.db"


def default_settings_path() -> str:
    return os.environ.get("SETTINGS_PATH") or "settings.yaml"


class YamlConfig:
    """Settings file in YAML; secrets go to the system keyring when
    ``ENCRYPT_SETTINGS=1`` and the file only records that they exist."""

    SENSITIVE_KEYS = {
        "password_pepper",
    }

    def __init__(self, path: str | None = None) -> None:
        self.path = path or default_settings_path()
        self.encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"
        self.service = KEYRING_SERVICE

    def _restore_secrets(self, data: dict) -> dict:
        for key in self.SENSITIVE_KEYS & set(data):
            secret = keyring.get_password(self.service, key)
            if secret is None:
                data.pop(key)
            else:
                data[key] = secret
        return data

    def _store_secrets(self, data: dict) -> dict:
        for key in self.SENSITIVE_KEYS & set(data):
            keyring.set_password(self.service, key, str(data[key]))
            data[key] = True
        return data

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a mapping")
        return self._restore_secrets(data) if self.encrypt else data

    def save(self, data: dict) -> None:
        out = dict(data)
        if self.encrypt:
            out = self._store_secrets(out)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f, sort_keys=True)
