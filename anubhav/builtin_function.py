import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from anubhav.errors import fail
from anubhav.types import round_half_away_from_zero


@dataclass
class BuiltinFunction:
    """An expression-level built-in such as MIN(a b) or RANDOM().

    `fn` receives the interpreter and the argument list. Built-ins that
    take a name (LENGTH, SIZE) receive the name string instead of a
    number.
    """
    name: str
    arity: int
    fn: Callable[[Any, List[Any]], float]
    takes_name: bool = False

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"


def builtin_length(interp, args: List[Any]) -> float:
    name = args[0]
    if name in interp.env.intents:
        return float(len(interp.env.intents[name]))
    raise fail('TypeError', f"LENGTH expects an intent name, '{name}' is not one")


def builtin_size(interp, args: List[Any]) -> float:
    name = args[0]
    if name in interp.env.arrays:
        return float(len(interp.env.arrays[name]))
    raise fail('TypeError', f"SIZE expects an array name, '{name}' is not one")


BUILTINS: Dict[str, BuiltinFunction] = {
    'MIN': BuiltinFunction('MIN', 2, lambda interp, args: min(args[0], args[1])),
    'MAX': BuiltinFunction('MAX', 2, lambda interp, args: max(args[0], args[1])),
    'FLOOR': BuiltinFunction('FLOOR', 1, lambda interp, args: float(math.floor(args[0])) if math.isfinite(args[0]) else args[0]),
    'CEIL': BuiltinFunction('CEIL', 1, lambda interp, args: float(math.ceil(args[0])) if math.isfinite(args[0]) else args[0]),
    'ROUND': BuiltinFunction('ROUND', 1, lambda interp, args: round_half_away_from_zero(args[0])),
    'RANDOM': BuiltinFunction('RANDOM', 0, lambda interp, args: interp.rng.next_float()),
    'LENGTH': BuiltinFunction('LENGTH', 1, builtin_length, takes_name=True),
    'SIZE': BuiltinFunction('SIZE', 1, builtin_size, takes_name=True),
}
