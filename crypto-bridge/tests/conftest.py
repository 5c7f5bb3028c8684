# -*- coding: utf-8 -*-
"""
tests/conftest.py
公共夹具：可手动拨动的时钟，用来模拟 TTL 过期和跨日。
"""

import time

import pytest


class FakeClock:
    def __init__(self, t: float):
        self.t = float(t)

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


# 本地时间 2024-05-01 12:00:00，离午夜足够远
NOON = time.mktime((2024, 5, 1, 12, 0, 0, 0, 0, -1))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOON)
