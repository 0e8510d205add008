import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from .backends import Backend, make_timestamp
from .models import (
    FavoriteEntry,
    FavoriteKeyword,
    FavoriteKind,
    KeywordList,
    ProductAnalysis,
    ShopAnalysis,
)

logger = logging.getLogger(__name__)

CONNECTED_SHOP_KEY = "connected_etsy_shop"
KEYWORD_LISTS_KEY = "keyword_lists"

FAVORITE_KEYS: dict[str, str] = {
    "keywords": "favorite_keywords",
    "shops": "favorite_shops",
    "products": "favorite_products",
}

FAVORITE_MODELS: dict[str, type[BaseModel]] = {
    "keywords": FavoriteKeyword,
    "shops": ShopAnalysis,
    "products": ProductAnalysis,
}

IDENTITY_FIELDS: dict[str, str] = {
    "keywords": "keyword",
    "shops": "shop_name",
    "products": "product_concept",
}


def _favorite_kind(kind: str) -> FavoriteKind:
    if kind not in FAVORITE_KEYS:
        raise ValueError(f"unknown favorite kind '{kind}', expected one of {sorted(FAVORITE_KEYS)}")
    return kind  # type: ignore[return-value]


def identity_of(kind: FavoriteKind, entry: FavoriteEntry) -> str:
    return getattr(entry, IDENTITY_FIELDS[_favorite_kind(kind)])


class CollectionStore:
    """Key-scoped snapshot storage for favorites, keyword lists and the connected shop.

    Each collection is read and written whole. Mutators persist the new
    snapshot and return what reading it back yields, so callers never hold a
    value the backend does not. Unreadable or corrupt data reads as the
    collection's empty default.
    """

    def __init__(self, backend: Backend):
        self._backend = backend

    # -- snapshot io -------------------------------------------------------

    def _read_json(self, key: str, default: Any) -> Any:
        try:
            text = self._backend.read(key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("could not read %s: %s", key, exc)
            return default
        if text is None:
            return default
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("discarding corrupt %s: %s", key, exc)
            return default

    def _write_json(self, key: str, value: Any) -> None:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        try:
            self._backend.write(key, text)
        except OSError as exc:
            logger.error("could not persist %s: %s", key, exc)

    def _read_records(self, key: str, model: type[BaseModel]) -> list[Any]:
        data = self._read_json(key, [])
        if not isinstance(data, list):
            logger.warning("discarding corrupt %s: expected a list, got %s", key, type(data).__name__)
            return []
        records = []
        for idx, item in enumerate(data):
            try:
                records.append(model.model_validate(item))
            except ValidationError as exc:
                logger.warning("dropping invalid %s entry %d: %s", key, idx, exc)
        return records

    def _write_records(self, key: str, records: list[BaseModel]) -> None:
        self._write_json(key, [record.model_dump(mode="json", by_alias=True) for record in records])

    # -- connected shop ----------------------------------------------------

    def get_connected_shop(self) -> str | None:
        value = self._read_json(CONNECTED_SHOP_KEY, None)
        if isinstance(value, str) and value.strip():
            return value
        return None

    def set_connected_shop(self, name: str) -> str | None:
        name = name.strip()
        if name:
            self._write_json(CONNECTED_SHOP_KEY, name)
        return self.get_connected_shop()

    def clear_connected_shop(self) -> None:
        try:
            self._backend.delete(CONNECTED_SHOP_KEY)
        except OSError as exc:
            logger.error("could not clear %s: %s", CONNECTED_SHOP_KEY, exc)

    # -- favorites ---------------------------------------------------------

    def list_favorites(self, kind: FavoriteKind) -> list[FavoriteEntry]:
        kind = _favorite_kind(kind)
        return self._read_records(FAVORITE_KEYS[kind], FAVORITE_MODELS[kind])

    def is_favorite(self, kind: FavoriteKind, identity: str) -> bool:
        return any(identity_of(kind, fav) == identity for fav in self.list_favorites(kind))

    def toggle_favorite(self, kind: FavoriteKind, entry: FavoriteEntry | dict[str, Any]) -> bool:
        """Add ``entry`` if its identity key is absent, remove it otherwise.

        Returns the membership state after the toggle.
        """
        kind = _favorite_kind(kind)
        model = FAVORITE_MODELS[kind]
        if isinstance(entry, BaseModel):
            entry = entry.model_dump()
        record = model.model_validate(entry)
        identity = identity_of(kind, record)

        favorites = self.list_favorites(kind)
        if any(identity_of(kind, fav) == identity for fav in favorites):
            favorites = [fav for fav in favorites if identity_of(kind, fav) != identity]
        else:
            favorites.append(record)
        self._write_records(FAVORITE_KEYS[kind], favorites)
        return self.is_favorite(kind, identity)

    def remove_favorite(self, kind: FavoriteKind, identity: str) -> bool:
        kind = _favorite_kind(kind)
        favorites = self.list_favorites(kind)
        remaining = [fav for fav in favorites if identity_of(kind, fav) != identity]
        if len(remaining) == len(favorites):
            return False
        self._write_records(FAVORITE_KEYS[kind], remaining)
        return not self.is_favorite(kind, identity)

    # -- keyword lists -----------------------------------------------------

    def list_keyword_lists(self) -> list[KeywordList]:
        return self._read_records(KEYWORD_LISTS_KEY, KeywordList)

    def get_list(self, list_id: str) -> KeywordList | None:
        for keyword_list in self.list_keyword_lists():
            if keyword_list.id == list_id:
                return keyword_list
        return None

    def create_list(self, name: str) -> KeywordList | None:
        name = name.strip()
        if not name:
            return None
        lists = self.list_keyword_lists()
        existing_ids = {keyword_list.id for keyword_list in lists}
        list_id = make_timestamp()
        while list_id in existing_ids:
            list_id = make_timestamp()
        lists.append(
            KeywordList(
                id=list_id,
                name=name,
                keywords=[],
                created_at=datetime.now(timezone.utc).isoformat(),
            )
        )
        self._write_records(KEYWORD_LISTS_KEY, lists)
        return self.get_list(list_id)

    def delete_list(self, list_id: str) -> bool:
        lists = self.list_keyword_lists()
        remaining = [keyword_list for keyword_list in lists if keyword_list.id != list_id]
        if len(remaining) == len(lists):
            return False
        self._write_records(KEYWORD_LISTS_KEY, remaining)
        return self.get_list(list_id) is None

    def _update_list(self, list_id: str, mutate: Callable[[list[str]], list[str]]) -> KeywordList | None:
        lists = self.list_keyword_lists()
        for idx, keyword_list in enumerate(lists):
            if keyword_list.id == list_id:
                lists[idx] = keyword_list.model_copy(update={"keywords": mutate(list(keyword_list.keywords))})
                break
        else:
            return None
        self._write_records(KEYWORD_LISTS_KEY, lists)
        return self.get_list(list_id)

    def add_keyword(self, list_id: str, keyword: str) -> KeywordList | None:
        keyword = keyword.strip()
        if not keyword:
            return self.get_list(list_id)
        return self._update_list(list_id, lambda keywords: keywords + [keyword])

    def remove_keyword(self, list_id: str, keyword: str) -> KeywordList | None:
        return self._update_list(list_id, lambda keywords: [kw for kw in keywords if kw != keyword])
