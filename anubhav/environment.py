from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from anubhav.ast import FunctionDef
from anubhav.errors import fail
from anubhav.types import format_number

_MISSING = object()


class Environment:
    """Interpreter state: five flat namespaces, the function table and the call stack.

    The same name may live in several namespaces at once; each accessor
    consults exactly the namespace it is named after. Only `recall`
    falls back across namespaces (innermost frame, then variables, then
    calculations).
    """
    def __init__(self):
        self.intents: Dict[str, str] = {}
        self.calculations: Dict[str, float] = {}
        self.variables: Dict[str, float] = {}
        self.arrays: Dict[str, List[float]] = {}
        self.dicts: Dict[str, Dict[str, float]] = {}
        self.functions: Dict[str, FunctionDef] = {}
        self.frames: List[Dict[str, float]] = []

    # -- lookups -----------------------------------------------------------

    def recall(self, name: str) -> float:
        if self.frames and name in self.frames[-1]:
            return self.frames[-1][name]
        if name in self.variables:
            return self.variables[name]
        if name in self.calculations:
            return self.calculations[name]
        raise fail('NameError', f"Variable '{name}' not found")

    def intent(self, name: str) -> str:
        if name not in self.intents:
            raise fail('NameError', f"Intent '{name}' not found")
        return self.intents[name]

    def array(self, name: str) -> List[float]:
        if name not in self.arrays:
            raise fail('NameError', f"Array '{name}' not found")
        return self.arrays[name]

    def dictionary(self, name: str) -> Dict[str, float]:
        if name not in self.dicts:
            raise fail('NameError', f"Dictionary '{name}' not found")
        return self.dicts[name]

    def function(self, name: str) -> FunctionDef:
        if name not in self.functions:
            raise fail('NameError', f"Function '{name}' not found")
        return self.functions[name]

    def render(self, name: str) -> Optional[str]:
        """Text of `name` for template substitution, or None when unknown."""
        if name in self.intents:
            return self.intents[name]
        if name in self.calculations:
            return format_number(self.calculations[name])
        if name in self.variables:
            return format_number(self.variables[name])
        if self.frames and name in self.frames[-1]:
            return format_number(self.frames[-1][name])
        return None

    def resolve_text(self, text: str) -> str:
        """An intent's value when `text` names one, otherwise `text` itself."""
        return self.intents.get(text, text)

    def type_of(self, name: str) -> str:
        if (self.frames and name in self.frames[-1]) or name in self.variables or name in self.calculations:
            return 'number'
        if name in self.intents:
            return 'string'
        if name in self.arrays:
            return 'array'
        if name in self.dicts:
            return 'dictionary'
        return 'undefined'

    # -- scoping -----------------------------------------------------------

    def push_frame(self, bindings: Dict[str, float]):
        self.frames.append(dict(bindings))

    def pop_frame(self):
        self.frames.pop()

    @contextmanager
    def temporaries(self, names: List[str]) -> Iterator[None]:
        """Let a callback bind `names` in variables, then put back what was there.

        Names that did not exist before are removed again, including when
        the body raises.
        """
        saved = {name: self.variables.get(name, _MISSING) for name in names}
        try:
            yield
        finally:
            for name, value in saved.items():
                if value is _MISSING:
                    self.variables.pop(name, None)
                else:
                    self.variables[name] = value
