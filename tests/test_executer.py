import errno
import io
import os
import stat
import tempfile
import time
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from mysh.errors import SpawnFailureError
from mysh.executer import EXIT_FAILURE, EXIT_NOT_FOUND, PipelineExecutor
from mysh.parser import ShellParser


class ExecutorTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.parser = ShellParser()
        self.stderr = io.StringIO()

    def path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def write(self, name, content):
        with open(self.path(name), "w") as f:
            f.write(content)
        return self.path(name)

    def read(self, name):
        with open(self.path(name), "rb") as f:
            return f.read()

    def run_line(self, line, executor=None):
        executor = executor or PipelineExecutor()
        with redirect_stderr(self.stderr), redirect_stdout(io.StringIO()):
            return executor.run(self.parser.parse_pipeline(line))

    def run_captured(self, line):
        """Run ``line`` with the pipeline's output end bound to a file."""
        with open(self.path("captured"), "wb") as out:
            code = self.run_line(line, PipelineExecutor(stdout=out))
        return code, self.read("captured")


class TestSingleStage(ExecutorTestCase):
    def test_output_then_input_redirection_round_trip(self):
        out = self.path("out.txt")
        self.assertEqual(self.run_line(f'echo "Hello" > {out}'), 0)
        code, captured = self.run_captured(f"cat < {out}")
        self.assertEqual(code, 0)
        self.assertEqual(captured, self.read("out.txt"))
        self.assertEqual(captured, b'"Hello"\n')

    def test_output_file_is_truncated(self):
        target = self.write("target", "a much longer previous content\n")
        self.run_line(f"echo x > {target}")
        self.assertEqual(self.read("target"), b"x\n")

    def test_output_file_permissions(self):
        target = self.path("fresh")
        old_umask = os.umask(0)
        try:
            self.run_line(f"echo x > {target}")
        finally:
            os.umask(old_umask)
        self.assertEqual(stat.S_IMODE(os.stat(target).st_mode), 0o644)

    def test_exit_status_is_returned(self):
        self.assertEqual(self.run_line("true"), 0)
        self.assertNotEqual(self.run_line("false"), 0)

    def test_missing_input_file(self):
        created = self.path("never")
        code = self.run_line(f"cat < {self.path('missing')} > {created}")
        self.assertEqual(code, EXIT_FAILURE)
        self.assertFalse(os.path.exists(created))
        lines = self.stderr.getvalue().splitlines()
        self.assertEqual(len(lines), 1)
        self.assertIn("Input file opening failed", lines[0])

    def test_unwritable_output_file(self):
        code = self.run_line(f"echo x > {self.path('no/such/dir/file')}")
        self.assertEqual(code, EXIT_FAILURE)
        self.assertIn("Output file opening failed", self.stderr.getvalue())

    def test_command_not_found(self):
        code = self.run_line("mysh_no_such_command_xyz --flag")
        self.assertEqual(code, EXIT_NOT_FOUND)
        self.assertEqual(
            self.stderr.getvalue().strip(),
            "mysh_no_such_command_xyz: command not found",
        )

    def test_spawn_failure_is_raised(self):
        failure = OSError(errno.EAGAIN, "Resource temporarily unavailable")
        with mock.patch("mysh.executer.subprocess.Popen", side_effect=failure):
            with self.assertRaises(SpawnFailureError):
                self.run_line("true")


class TestBackground(ExecutorTestCase):
    def test_background_returns_immediately(self):
        executor = PipelineExecutor()
        start = time.monotonic()
        with redirect_stdout(io.StringIO()) as out:
            code = executor.run(self.parser.parse_pipeline("sleep 1 &"))
        elapsed = time.monotonic() - start
        self.assertEqual(code, 0)
        self.assertLess(elapsed, 0.1)
        self.assertEqual(len(executor.jobs), 1)
        self.assertIn(f"[{executor.jobs[0].pid}]", out.getvalue())

        executor.jobs[0].process.wait()
        with redirect_stdout(io.StringIO()) as out:
            finished = executor.reap_background()
        self.assertEqual(len(finished), 1)
        self.assertEqual(executor.jobs, [])
        self.assertIn("done", out.getvalue())

    def test_foreground_blocks(self):
        start = time.monotonic()
        self.run_line("sleep 0.3")
        self.assertGreaterEqual(time.monotonic() - start, 0.25)

    def test_reaping_leaves_running_jobs(self):
        executor = PipelineExecutor()
        with redirect_stdout(io.StringIO()):
            executor.run(self.parser.parse_pipeline("sleep 1 &"))
            self.assertEqual(executor.reap_background(), [])
        self.assertEqual(len(executor.jobs), 1)
        executor.jobs[0].process.wait()


class TestPipeline(ExecutorTestCase):
    def test_two_stages(self):
        code, captured = self.run_captured(r"printf a\nb\nc\n | grep b")
        self.assertEqual(code, 0)
        self.assertEqual(captured, b"b\n")

    def test_three_stages(self):
        code, captured = self.run_captured(r"printf c\na\nb\n | sort | head -n 1")
        self.assertEqual(code, 0)
        self.assertEqual(captured, b"a\n")

    def test_pipeline_input_end(self):
        source = self.write("words", "one two three\n")
        with open(source, "rb") as src, open(self.path("captured"), "wb") as out:
            code = self.run_line("cat | wc -w", PipelineExecutor(stdin=src, stdout=out))
        self.assertEqual(code, 0)
        self.assertEqual(self.read("captured").strip(), b"3")

    def test_status_of_last_stage(self):
        self.assertEqual(self.run_captured("echo x | false")[0], 1)
        self.assertEqual(self.run_captured("false | true")[0], 0)

    def test_per_stage_redirection_is_ignored(self):
        ignored = self.path("ignored")
        code, captured = self.run_captured(f"echo hi > {ignored} | cat")
        self.assertEqual(code, 0)
        self.assertEqual(captured, b"hi\n")
        self.assertFalse(os.path.exists(ignored))

    def test_pipeline_always_waits(self):
        executor = PipelineExecutor()
        start = time.monotonic()
        self.run_line("sleep 0.3 | sleep 0.3 &", executor)
        self.assertGreaterEqual(time.monotonic() - start, 0.25)
        self.assertEqual(executor.jobs, [])

    def test_missing_command_in_pipeline(self):
        code, captured = self.run_captured("echo hi | mysh_no_such_command_xyz")
        self.assertEqual(code, EXIT_NOT_FOUND)
        self.assertEqual(captured, b"")
        self.assertIn("command not found", self.stderr.getvalue())

    def test_downstream_sees_end_of_stream(self):
        code, captured = self.run_captured("mysh_no_such_command_xyz | wc -c")
        self.assertEqual(code, 0)
        self.assertEqual(captured.strip(), b"0")

    @unittest.skipUnless(os.path.isdir("/proc/self/fd"), "needs /proc")
    def test_no_descriptor_leak(self):
        with open(self.path("captured"), "wb") as out:
            executor = PipelineExecutor(stdout=out)
            before = len(os.listdir("/proc/self/fd"))
            self.run_line("echo a | cat | cat | wc -l", executor)
            self.run_line("mysh_no_such_command_xyz | cat", executor)
            after = len(os.listdir("/proc/self/fd"))
        self.assertEqual(before, after)

    def test_pipe_failure(self):
        failure = OSError(errno.EMFILE, "Too many open files")
        with mock.patch("mysh.executer.os.pipe", side_effect=failure):
            with self.assertRaises(SpawnFailureError):
                self.run_line("echo a | cat")


if __name__ == "__main__":
    unittest.main(verbosity=2)
