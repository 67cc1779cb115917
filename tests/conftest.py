from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List

import pytest

from core.models import EarningRecord

SAMPLE_CSV = """Date,Description,Amount
2024-01-05,Invoice #1,100
2024-01-20,Invoice #2,50

2024-02-01,Invoice #3,25
,Missing date,100
2024-03-10,Bonus,abc
"""


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


def make_records(*rows) -> List[EarningRecord]:
    return [
        EarningRecord(date=date.fromisoformat(d), amount=Decimal(a), line=i)
        for i, (d, a) in enumerate(rows, start=1)
    ]
