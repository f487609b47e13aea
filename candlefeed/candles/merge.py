from __future__ import annotations

from typing import List, Optional

from candlefeed.models.market import Candle


def merge_live(history: List[Candle], live: Optional[Candle]) -> List[Candle]:
    """
    Historical + live, for charting.

    Same start_ts as the last closed candle -> live replaces it.
    Otherwise live is appended as the trailing candle.
    """
    merged = list(history)
    if live is None:
        return merged

    if merged and merged[-1].start_ts == live.start_ts:
        merged[-1] = live
    else:
        merged.append(live)
    return merged
