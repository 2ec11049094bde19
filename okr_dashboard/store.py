"""
In-memory dataset store keyed by (business function, fiscal year).

One DatasetStore instance is owned by the server (or the Streamlit app)
and passed explicitly to the watcher and the API routes. Each refresh
replaces a whole entry under the lock; readers get a deep copy.
"""

import copy
import logging
import re
import threading

from .config import PRIMARY_FUNCTION
from .models import Dataset, DatasetKey

logger = logging.getLogger(__name__)


def fy_number(fiscal_year: str) -> int:
    """Numeric part of an FY label ("FY26" -> 26), 0 when there is none."""
    digits = re.sub(r"\D", "", fiscal_year or "")
    return int(digits) if digits else 0


class DatasetStore:
    """Two-level mapping function -> fiscal year -> Dataset."""

    def __init__(self):
        self._data: dict[str, dict[str, Dataset]] = {}
        self._lock = threading.RLock()

    def get(self, key: DatasetKey) -> Dataset | None:
        with self._lock:
            dataset = self._data.get(key.function, {}).get(key.fiscal_year)
            return copy.deepcopy(dataset) if dataset is not None else None

    def set(self, key: DatasetKey, dataset: Dataset) -> None:
        with self._lock:
            self._data.setdefault(key.function, {})[key.fiscal_year] = dataset
        logger.debug("Stored dataset for %s/%s", key.function, key.fiscal_year)

    def invalidate(self, key: DatasetKey) -> bool:
        """Drop one entry; returns False when it was not cached."""
        with self._lock:
            years = self._data.get(key.function)
            if not years or key.fiscal_year not in years:
                return False
            del years[key.fiscal_year]
            if not years:
                del self._data[key.function]
        logger.info("Invalidated dataset for %s/%s", key.function, key.fiscal_year)
        return True

    def __contains__(self, key: DatasetKey) -> bool:
        with self._lock:
            return key.fiscal_year in self._data.get(key.function, {})

    def keys(self) -> list[DatasetKey]:
        with self._lock:
            return [
                DatasetKey(func, fy)
                for func, years in self._data.items()
                for fy in years
            ]

    def functions(self) -> list[str]:
        """Functions holding at least one dataset, primary function first."""
        with self._lock:
            funcs = [f for f, years in self._data.items() if years]
        return sorted(funcs, key=lambda f: (f != PRIMARY_FUNCTION, f))

    def years(self, function: str) -> list[str]:
        """Fiscal years cached for a function, oldest first."""
        with self._lock:
            years = list(self._data.get(function, {}))
        return sorted(years, key=fy_number)

    def default_function(self) -> str | None:
        funcs = self.functions()
        return funcs[0] if funcs else None

    def default_year(self, function: str) -> str | None:
        """Latest fiscal year cached for a function."""
        years = self.years(function)
        return years[-1] if years else None
