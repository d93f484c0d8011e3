import logging
import threading
import time
from typing import Any, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

CACHE_TTL = 60 * 60  # 60 minutes


def _ttl_bucket(ttl: int = CACHE_TTL) -> int:
    return int(time.time() // ttl)


def product_key(product_id: int) -> str:
    return f"product:{product_id}"


def cart_key(user_id: int) -> str:
    return f"cart:{user_id}"


def coupon_key(code: str) -> str:
    return f"coupon:{code}"


def orders_key(user_id: Optional[int] = None) -> str:
    return f"orders:{user_id}" if user_id is not None else "orders:"


def tax_key(country: Optional[str], region: Optional[str], city: Optional[str]) -> str:
    return f"tax:{country or ''}:{region or ''}:{city or ''}"


class ResponseCache:
    """In-process key-value cache for read endpoints.

    Entries expire when the TTL bucket rolls over, the same way the
    lru_cache helpers keyed on ``_ttl_bucket()`` did. Writers call
    ``invalidate`` / ``invalidate_prefix`` after they commit.
    """

    def __init__(self, ttl: int = CACHE_TTL, maxsize: int = 1024):
        self.ttl = ttl
        self.maxsize = maxsize
        self._data: Dict[Hashable, Tuple[int, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            bucket, value = entry
            if bucket != _ttl_bucket(self.ttl):
                del self._data[key]
                return None
            return value

    def set(self, key: Hashable, value: Any):
        with self._lock:
            if len(self._data) >= self.maxsize and key not in self._data:
                # drop the oldest insertion
                self._data.pop(next(iter(self._data)))
            self._data[key] = (_ttl_bucket(self.ttl), value)

    def invalidate(self, *keys: Hashable):
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def invalidate_prefix(self, prefix: str):
        with self._lock:
            for key in [k for k in self._data if isinstance(k, str) and k.startswith(prefix)]:
                del self._data[key]

    def clear(self):
        with self._lock:
            self._data.clear()

    def __len__(self):
        return len(self._data)
