from src.components.redirects import RedirectConfig, dump_rules, parse_rules
from src.domain.entities import RedirectRule
from src.ports.kv import KeyValueStorePort

REDIRECTS_KEY = "redirects"


class KeyValueRedirectStore:
    """Redirect list stored as one JSON array in the key-value store."""

    def __init__(self, store: KeyValueStorePort, config: RedirectConfig | None = None):
        self._store = store
        self._config = config or RedirectConfig()

    def load(self) -> list[RedirectRule]:
        return parse_rules(self._store.get(REDIRECTS_KEY) or "[]", self._config)

    def save(self, rules: list[RedirectRule]) -> None:
        self._store.set(REDIRECTS_KEY, dump_rules(rules[: self._config.max_redirects]))
