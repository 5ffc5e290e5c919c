from typing import Dict, Iterable, List, Optional
from anubhav.errors import fail


class MemoryIO:
    """Host capabilities kept entirely in memory.

    Files live in `files`, console output is collected in `output`, INPUT
    answers are taken from `inputs` in order (an exhausted queue reads as
    an empty line) and requested sleeps are recorded instead of performed.
    """
    def __init__(self, files: Optional[Dict[str, str]] = None, inputs: Iterable[str] = ()):
        self.files: Dict[str, str] = dict(files or {})
        self.inputs: List[str] = list(inputs)
        self.output: List[str] = []
        self.prompts: List[str] = []
        self.sleeps: List[float] = []

    def read_file(self, path: str) -> str:
        if path not in self.files:
            raise fail('IOError', f"Failed to read file '{path}': No such file or directory")
        return self.files[path]

    def write_file(self, path: str, content: str):
        self.files[path] = content

    def append_file(self, path: str, content: str):
        self.files[path] = self.files.get(path, '') + content

    def file_exists(self, path: str) -> bool:
        return path in self.files

    def write_line(self, text: str):
        self.output.append(text)

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.inputs:
            return ''
        return self.inputs.pop(0)

    def sleep(self, millis: float):
        self.sleeps.append(millis)
