"""Unit tests for the wmctrl window backend."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from winswitch.utils.exceptions import ExternalToolError, MalformedLineError
from winswitch.windows.models import WindowRecord
from winswitch.windows.wmctrl import WmctrlBackend, parse_wmctrl_output

def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    """Fake asyncio subprocess."""
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.returncode = returncode
    return proc

class TestParseWmctrlOutput(unittest.TestCase):
    """Test cases for parse_wmctrl_output."""

    def test_one_record_per_line_in_order(self):
        output = "0x01 0 host Terminal\n0x02 0 host Browser"
        windows = parse_wmctrl_output(output)
        self.assertEqual([w.id for w in windows], ["0x01", "0x02"])
        self.assertEqual([w.title for w in windows], ["Terminal", "Browser"])

    def test_title_keeps_internal_whitespace(self):
        windows = parse_wmctrl_output("0x03e00003  0 myhost vim  -  notes.txt")
        self.assertEqual(windows[0].title, "vim  -  notes.txt")
        self.assertEqual(windows[0].desktop, "0")
        self.assertEqual(windows[0].host, "myhost")

    def test_empty_lines_are_discarded(self):
        output = "\n0x01 0 host Terminal\r\n\r\n   \n0x02 -1 host Browser\n"
        windows = parse_wmctrl_output(output)
        self.assertEqual(len(windows), 2)
        self.assertEqual(windows[1], WindowRecord(id="0x02", title="Browser", desktop="-1", host="host"))

    def test_empty_title(self):
        windows = parse_wmctrl_output("0x01 0 host")
        self.assertEqual(windows[0].title, "")

    def test_empty_output(self):
        self.assertEqual(parse_wmctrl_output(""), [])

    def test_malformed_line_aborts_batch(self):
        output = "0x01 0 host Terminal\nnot a window line"
        with self.assertRaises(MalformedLineError) as ctx:
            parse_wmctrl_output(output)
        self.assertEqual(ctx.exception.line_number, 2)
        self.assertEqual(ctx.exception.line, "not a window line")

    def test_malformed_line_skipped_when_requested(self):
        output = "garbage\n0x01 0 host Terminal"
        windows = parse_wmctrl_output(output, skip_malformed=True)
        self.assertEqual([w.title for w in windows], ["Terminal"])

class TestWmctrlBackend(unittest.IsolatedAsyncioTestCase):
    """Test cases for WmctrlBackend."""

    async def test_list_windows_runs_wmctrl_l(self):
        proc = make_process(stdout=b"0x01 0 host Terminal\n0x02 0 host Browser\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as exec_mock:
            windows = await WmctrlBackend().list_windows()

        self.assertEqual(exec_mock.call_args.args, ("wmctrl", "-l"))
        self.assertEqual([w.title for w in windows], ["Terminal", "Browser"])

    async def test_nonzero_exit_raises(self):
        proc = make_process(stderr=b"Cannot open display.", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with self.assertRaises(ExternalToolError) as ctx:
                await WmctrlBackend().list_windows()
        self.assertEqual(ctx.exception.returncode, 1)
        self.assertIn("Cannot open display", ctx.exception.stderr)

    async def test_missing_binary_raises(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("wmctrl"))):
            with self.assertRaises(ExternalToolError):
                await WmctrlBackend().list_windows()

    async def test_focus_by_title_passes_title_as_single_argument(self):
        proc = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as exec_mock:
            await WmctrlBackend().focus_by_title('My "quoted" window')
        self.assertEqual(exec_mock.call_args.args, ("wmctrl", "-a", 'My "quoted" window'))

    async def test_focus_by_id(self):
        proc = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as exec_mock:
            await WmctrlBackend(command="/usr/bin/wmctrl").focus_by_id("0x02")
        self.assertEqual(exec_mock.call_args.args, ("/usr/bin/wmctrl", "-i", "-a", "0x02"))

    async def test_focus_failure_raises(self):
        proc = make_process(returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with self.assertRaises(ExternalToolError):
                await WmctrlBackend().focus_by_title("Nothing")

if __name__ == '__main__':
    unittest.main()
