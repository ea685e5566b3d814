import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from py_positions.types import Trade
from .validation import validate_trade


class TradeLedger:
    """
    Ordered, insertion-preserving collection of trades plus the pinned tag list.
    Trades are immutable; edits replace the whole record by id.
    """

    def __init__(self, trades: Optional[Iterable[Trade]] = None, pinned_tags: Optional[Iterable[str]] = None):
        self._trades: List[Trade] = []
        self.pinned_tags: List[str] = list(pinned_tags or [])
        for t in trades or []:
            self.add(t)

    @property
    def trades(self) -> Tuple[Trade, ...]:
        """ Snapshot for the calculators; later ledger edits do not touch it. """
        return tuple(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    def _index_of(self, trade_id: str) -> int:
        for i, t in enumerate(self._trades):
            if t.id == trade_id:
                return i
        raise KeyError(f"Trade {trade_id} not found")

    def get(self, trade_id: str) -> Optional[Trade]:
        for t in self._trades:
            if t.id == trade_id:
                return t
        return None

    def add(self, trade: Trade) -> Trade:
        validate_trade(trade)
        if self.get(trade.id) is not None:
            raise ValueError(f"Trade {trade.id} already exists")
        self._trades.append(trade)
        return trade

    def replace(self, trade_id: str, trade: Trade) -> Trade:
        """ Full replacement by id; the trade keeps its place in the ledger. """
        idx = self._index_of(trade_id)
        if trade.id != trade_id:
            raise ValueError(f"Replacement id {trade.id} does not match {trade_id}")
        validate_trade(trade)
        self._trades[idx] = trade
        return trade

    def delete(self, trade_id: str) -> bool:
        before = len(self._trades)
        self._trades = [t for t in self._trades if t.id != trade_id]
        return len(self._trades) < before

    def delete_many(self, trade_ids: Iterable[str]) -> int:
        ids = set(trade_ids)
        before = len(self._trades)
        self._trades = [t for t in self._trades if t.id not in ids]
        return before - len(self._trades)

    def clear(self) -> None:
        self._trades = []

    def import_trades(self, trades: Iterable[Trade]) -> int:
        """ Appends trades whose id is not yet in the ledger. Returns the number added. """
        existing = {t.id for t in self._trades}
        added = 0
        for t in trades:
            if t.id in existing:
                logging.debug(f"Skipping duplicate trade id {t.id} on import")
                continue
            validate_trade(t)
            self._trades.append(t)
            existing.add(t.id)
            added += 1
        return added

    def all_tags(self) -> List[str]:
        return sorted({tag for t in self._trades for tag in t.tags})

    def toggle_pin(self, tag: str) -> bool:
        """ Returns True if the tag is pinned after the call. """
        if tag in self.pinned_tags:
            self.pinned_tags = [t for t in self.pinned_tags if t != tag]
            return False
        self.pinned_tags = self.pinned_tags + [tag]
        return True

    def instruments(self) -> Dict[str, str]:
        """ code -> name of the first trade seen for it, in ledger order. """
        result: Dict[str, str] = {}
        for t in self._trades:
            if t.code not in result:
                result[t.code] = t.name
        return result


def filter_trades(trades: Sequence[Trade], text: str = "", tags: Optional[Iterable[str]] = None) -> List[Trade]:
    """
    Global view filter: every selected tag must be on the trade and the text
    must appear in the code or name (case-insensitive).
    """
    wanted = list(tags or [])
    needle = (text or "").strip().lower()
    if not needle and not wanted:
        return list(trades)

    result = []
    for t in trades:
        if wanted and not all(tag in t.tags for tag in wanted):
            continue
        if needle and needle not in t.code.lower() and needle not in t.name.lower():
            continue
        result.append(t)
    return result


def search_trades(trades: Sequence[Trade], text: str) -> List[Trade]:
    """ Trade list search: code, name or any tag containing the text. """
    needle = (text or "").strip().lower()
    if not needle:
        return list(trades)
    return [
        t for t in trades
        if needle in t.code.lower()
        or needle in t.name.lower()
        or any(needle in tag.lower() for tag in t.tags)
    ]
