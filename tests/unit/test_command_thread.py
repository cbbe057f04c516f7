"""
Unit tests for the console command reader.
"""

from nfcuid.threads.command_thread import CommandThread


def lines(*values):
    """Console input returning the values, then end of input."""
    pending = list(values)

    def read():
        if not pending:
            raise EOFError
        return pending.pop(0)
    return read


class TestCommandThread:
    """run() is called directly so commands execute in the test thread."""

    def test_repeat_commands(self):
        calls = []
        thread = CommandThread(lambda: calls.append("repeat"), lines("r", " REPEAT ", "x", ""))

        thread.run()

        assert calls == ["repeat", "repeat"]

    def test_end_of_input_stops(self):
        calls = []
        thread = CommandThread(lambda: calls.append("repeat"), lines())

        thread.run()

        assert calls == []

    def test_failing_repeat_keeps_reading(self):
        calls = []

        def repeat():
            calls.append("repeat")
            raise RuntimeError("keyboard gone")

        thread = CommandThread(repeat, lines("r", "r"))
        thread.run()

        assert calls == ["repeat", "repeat"]

    def test_stopped_thread_reads_nothing(self):
        read_calls = []

        def read():
            read_calls.append(1)
            return "r"

        thread = CommandThread(lambda: None, read)
        thread.stop()
        thread.run()

        assert read_calls == []

    def test_is_daemon(self):
        assert CommandThread(lambda: None).daemon is True
