from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from .records import TransactionRecord

_NOISE = {
    "pos", "ach", "debit", "card", "purchase", "pmt", "online", "www", "com",
    "inc", "llc", "co", "corp", "the",
}


def merchant_key(name: Optional[str]) -> str:
    """Grouping key for a merchant name: lowercase, digits/punctuation and noise tokens dropped."""
    s = (name or "").lower().strip()
    s = re.sub(r"[^a-z0-9\s]", " ", s)
    s = re.sub(r"\d+", " ", s)
    tokens = [t for t in s.split() if t not in _NOISE]
    # first few tokens are enough to tell merchants apart
    return " ".join(tokens[:4])


def group_debits_by_merchant(
    transactions: Iterable[TransactionRecord],
) -> Dict[str, List[TransactionRecord]]:
    """
    Debit records grouped by merchant, keyed by the first display name seen.

    Records without a merchant are left out; descriptions are too noisy to
    stand in for one.
    """
    groups: Dict[str, List[TransactionRecord]] = defaultdict(list)
    display: Dict[str, str] = {}
    for t in transactions:
        if not t.is_debit or not t.merchant:
            continue
        key = merchant_key(t.merchant)
        if not key:
            continue
        name = display.setdefault(key, t.merchant.strip())
        groups[name].append(t)
    return dict(groups)
