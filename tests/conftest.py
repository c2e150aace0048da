"""Shared fixtures: a scriptable fake oracle and fresh engines."""

import json
from typing import Callable, List, Optional, Union

import pytest

from attention_engine import ManualTicker, ResultCache, SynthesisEngine


HOMONYM = "A costureira consertou a manga da camisa enquanto comia uma manga doce."
BLACK_CAT_SOURCE = "O gato preto saltou sobre o muro alto ."
BLACK_CAT_TARGET = "The black cat jumped over the high wall ."


class FakeOracle:
    """Records every prompt; answers with a fixed reply, a function, or an error."""

    def __init__(
        self,
        reply: Union[str, Callable[[str], str], None] = None,
        error: Optional[Exception] = None,
    ):
        self.reply = reply
        self.error = error
        self.calls: List[str] = []

    async def generate(self, prompt, schema):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(prompt)
        return self.reply


def self_reply(n: int, value: float = 0.5, explanation: str = "Sujeito -> verbo") -> str:
    return json.dumps({
        "matrix": [[value] * n for _ in range(n)],
        "explanation": explanation,
    })


@pytest.fixture
def cache():
    return ResultCache()


@pytest.fixture
def offline_engine(cache):
    return SynthesisEngine(oracle=None, cache=cache)


@pytest.fixture
def ticker():
    return ManualTicker()
