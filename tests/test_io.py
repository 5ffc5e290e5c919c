import os

import pytest

from anubhav.errors import AnubhavError
from anubhav.interpreter import Interpreter, parse_program
from anubhav.std.io import BasicIO, MemoryIO


def run(source, io):
    interp = Interpreter(io=io)
    interp.run(parse_program(source))
    return interp.env


def test_memory_files_roundtrip():
    io = MemoryIO()
    env = run('STORE n 3\nWRITE_FILE "out.txt" "n=${n};"\nAPPEND_FILE "out.txt" "more"\n'
              'APPEND_FILE "new.txt" n\nREAD_FILE "out.txt" text\nEXISTS "out.txt" yes\nEXISTS "nope.txt" no', io)
    assert io.files['out.txt'] == 'n=3;more'
    assert io.files['new.txt'] == '3'
    assert env.intents['text'] == 'n=3;more'
    assert env.variables['yes'] == 1.0
    assert env.variables['no'] == 0.0


def test_read_missing_file_is_io_error():
    interp = Interpreter(io=MemoryIO())
    with pytest.raises(AnubhavError) as exc:
        interp.run(parse_program('READ_FILE "missing.txt" t'))
    assert exc.value.err.name == 'IOError'
    assert exc.value.err.message.startswith("Failed to read file 'missing.txt'")


def test_input_stores_numbers_and_strings():
    io = MemoryIO(inputs=[' 42 \n', 'Ada', ''])
    env = run('INPUT "Age? " age\nINPUT "Name? " name\nINPUT "Empty? " empty', io)
    assert env.variables['age'] == 42.0
    assert env.intents['name'] == 'Ada'
    assert env.intents['empty'] == ''
    assert io.prompts == ['Age? ', 'Name? ', 'Empty? ']


def test_sleep_is_delegated():
    io = MemoryIO()
    run('SLEEP 250\nSLEEP 10 * 2', io)
    assert io.sleeps == [250.0, 20.0]


def test_basic_io_uses_the_file_system(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    env = run('WRITE_FILE "a.txt" "first"\nAPPEND_FILE "a.txt" " second"\nREAD_FILE "a.txt" text\n'
              'EXISTS "a.txt" here\nPRINT text', BasicIO())
    assert (tmp_path / 'a.txt').read_text(encoding='utf-8') == 'first second'
    assert env.variables['here'] == 1.0
    assert capsys.readouterr().out.strip() == 'first second'


def test_basic_io_reports_os_errors(tmp_path):
    missing_dir = os.path.join(str(tmp_path), 'no', 'such', 'dir', 'f.txt')
    with pytest.raises(AnubhavError) as exc:
        BasicIO().write_file(missing_dir, 'x')
    assert exc.value.err.name == 'IOError'
    assert 'Failed to write to file' in exc.value.err.message


def test_basic_io_input_at_eof(monkeypatch):
    def raise_eof(prompt):
        raise EOFError
    monkeypatch.setattr('builtins.input', raise_eof)
    assert BasicIO().read_line('> ') == ''


def test_basic_io_sleep_out_of_range_is_catchable():
    with pytest.raises(AnubhavError) as exc:
        BasicIO().sleep(float('inf'))
    assert exc.value.err.name == 'RuntimeError'
    env = run('STORE r 0\nTRY SLEEP 10 ** 400 CATCH STORE r 1 END', BasicIO())
    assert env.variables['r'] == 1.0
