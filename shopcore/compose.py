from functools import reduce
from typing import Callable


def pipe(*funcs):
    """pipe(f, g, h)(x) == h(g(f(x)))"""
    return reduce(lambda f, g: lambda x: g(f(x)), funcs)


def tap(side_effect: Callable) -> Callable:
    """Шаг конвейера, который вызывает side_effect(x) и пропускает x дальше"""

    def _tap(x):
        side_effect(x)
        return x

    return _tap
