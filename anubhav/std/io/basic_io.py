import os
import time
from anubhav.errors import fail
from anubhav.types import format_number


def _reason(e: OSError) -> str:
    return e.strerror or str(e)


class BasicIO:
    """Host capabilities backed by the real file system and console."""

    def read_file(self, path: str) -> str:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise fail('IOError', f"Failed to read file '{path}': {_reason(e)}")
        except UnicodeDecodeError as e:
            raise fail('IOError', f"Failed to read file '{path}': {e.reason}")

    def write_file(self, path: str, content: str):
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise fail('IOError', f"Failed to write to file '{path}': {_reason(e)}")

    def append_file(self, path: str, content: str):
        try:
            with open(path, 'a', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise fail('IOError', f"Failed to append to file '{path}': {_reason(e)}")

    def file_exists(self, path: str) -> bool:
        return os.path.exists(path)

    def write_line(self, text: str):
        print(text, flush=True)

    def read_line(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return ''

    def sleep(self, millis: float):
        if millis > 0:
            try:
                time.sleep(millis / 1000.0)
            except OverflowError:
                raise fail('RuntimeError', f"SLEEP duration {format_number(millis)} ms is out of range")
