"""
Unit tests for FAHCommandService.

The connection is mocked, so these tests check the exact command text
sent for each operation and how replies are decoded.
"""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, Mock

from py2fah.core.command_codes import LogUpdatesArg
from py2fah.core.errors import (
    ErrorCodes,
    FormatError,
    ProtocolError,
    ValidationError,
)
from py2fah.core.tcp_connection import FAHConnection
from py2fah.models.info import Info
from py2fah.models.options import Options, Power
from py2fah.models.slot import SimulationInfo, SlotInfo, SlotQueueInfo
from py2fah.services.fah_command_service import FAHCommandService


def pyon(name, body):
    return f"PyON 1 {name}\n{body}\n---".encode()


class CommandServiceTestCase(unittest.TestCase):
    """Shared fixture with a mocked connection."""

    def setUp(self):
        self.mock_connection = Mock(spec=FAHConnection)
        self.mock_connection.execute.return_value = b""
        self.mock_connection.execute_eval.return_value = b""
        self.mock_connection.exclusive.return_value = MagicMock()
        self.service = FAHCommandService(self.mock_connection)

    def assert_sent(self, command):
        self.mock_connection.execute.assert_called_once_with(command)


class TestClientCommands(CommandServiceTestCase):
    """Test commands that act on the whole client."""

    def test_init(self):
        self.assertIs(self.service.connection, self.mock_connection)
        self.assertIsNotNone(self.service.decoder)
        self.assertIsNotNone(self.service.logger)

    def test_fire_and_forget_commands(self):
        cases = [
            (self.service.do_cycle, "do-cycle"),
            (self.service.request_id, "request-id"),
            (self.service.request_ws, "request-ws"),
            (self.service.screensaver, "screensaver"),
            (self.service.shutdown, "shutdown"),
            (self.service.wait_for_units, "wait-for-units"),
        ]

        for method, command in cases:
            with self.subTest(command=command):
                self.mock_connection.execute.reset_mock()
                self.assertIsNone(method())
                self.assert_sent(command)

    def test_help(self):
        self.mock_connection.execute.return_value = b"Folding@home Client\n  help"
        self.assertEqual(self.service.help(), "Folding@home Client\n  help")
        self.assert_sent("help")

    def test_configured(self):
        self.mock_connection.execute.return_value = pyon("configured", "True")
        self.assertIs(self.service.configured(), True)
        self.assert_sent("configured")

    def test_configured_rejects_non_bool(self):
        self.mock_connection.execute.return_value = pyon("configured", "1")
        with self.assertRaises(FormatError) as cm:
            self.service.configured()
        self.assertEqual(cm.exception.error_code, ErrorCodes.SHAPE_MISMATCH)

    def test_num_slots(self):
        self.mock_connection.execute.return_value = pyon("num-slots", "2")
        result = self.service.num_slots()

        self.assertEqual(result, 2)
        self.assertIsInstance(result, int)
        self.assert_sent("num-slots")

    def test_ppd(self):
        self.mock_connection.execute.return_value = pyon("ppd", "123456")
        result = self.service.ppd()

        self.assertEqual(result, 123456.0)
        self.assertIsInstance(result, float)
        self.assert_sent("ppd")

    def test_info(self):
        body = ('[["FAHClient", ["Version", "7.6.21"]], ["CBang", ["Date", "Oct 20 2020"]],'
                ' ["System", ["CPUs", "8"]], ["libFAH", ["Branch", "fah/v7.6"]]]')
        self.mock_connection.execute.return_value = pyon("info", body)

        info = self.service.info()

        self.assertIsInstance(info, Info)
        self.assertEqual(info.fah_client.version, "7.6.21")
        self.assertEqual(info.system.cpus, 8)
        self.assert_sent("info")

    def test_info_raw(self):
        self.mock_connection.execute.return_value = pyon("info", '[["FAHClient"]]')
        self.assertEqual(self.service.info_raw(), [["FAHClient"]])

    def test_info_wrong_layout(self):
        self.mock_connection.execute.return_value = pyon("info", '[["System"]]')
        with self.assertRaises(FormatError):
            self.service.info()

    def test_info_bad_field(self):
        body = '[["FAHClient"], ["CBang"], ["System", ["CPUs", "many"]], ["libFAH"]]'
        self.mock_connection.execute.return_value = pyon("info", body)

        with self.assertRaises(FormatError) as cm:
            self.service.info()

        self.assertEqual(cm.exception.error_code, ErrorCodes.SHAPE_MISMATCH)
        self.assertEqual(cm.exception.context['field'], "CPUs")
        self.assertIsInstance(cm.exception.__cause__, ValidationError)

    def test_download_core(self):
        self.service.download_core("0xa8", "https://example.org/core")
        self.assert_sent("download-core 0xa8 https://example.org/core")

    def test_download_core_rejects_whitespace(self):
        for core_type, url in (("0xa8 x", "u"), ("0xa8", ""), ("0xa8", "u\nshutdown")):
            with self.subTest(core_type=core_type, url=url):
                with self.assertRaises(ValidationError):
                    self.service.download_core(core_type, url)
        self.mock_connection.execute.assert_not_called()

    def test_uptime(self):
        self.mock_connection.execute_eval.return_value = b"1 day 2 hours 3 mins"

        result = self.service.uptime()

        self.assertEqual(result, timedelta(days=1, hours=2, minutes=3))
        self.mock_connection.execute_eval.assert_called_once_with("uptime")
        self.mock_connection.execute.assert_not_called()

    def test_uptime_unparseable(self):
        self.mock_connection.execute_eval.return_value = b"a while"
        with self.assertRaises(FormatError) as cm:
            self.service.uptime()
        self.assertEqual(cm.exception.error_code, ErrorCodes.PARSE_ERROR)

    def test_connection_errors_propagate(self):
        self.mock_connection.execute.side_effect = ProtocolError("closed", partial=b"x")
        with self.assertRaises(ProtocolError):
            self.service.num_slots()


class TestLogUpdates(CommandServiceTestCase):
    """Test the two-step log-updates exchange."""

    def setUp(self):
        super().setUp()
        self.mock_connection.execute_eval.return_value = (
            b'PyON 1 log-update\n"line one\\nline two\\n"\n---\n\n'
        )

    def test_start(self):
        result = self.service.log_updates(LogUpdatesArg.START)

        self.assertEqual(result, "line one\nline two\n")
        self.assert_sent("log-updates start")
        self.mock_connection.execute_eval.assert_called_once_with("eval")

    def test_session_held_across_both_commands(self):
        held = []
        session = self.mock_connection.exclusive.return_value
        session.__enter__.side_effect = lambda: held.append(True)
        session.__exit__.side_effect = lambda *exc: held.pop() and False
        self.mock_connection.execute.side_effect = lambda command: self.assertEqual(held, [True]) or b""
        self.mock_connection.execute_eval.side_effect = (
            lambda command: self.assertEqual(held, [True])
            or b'PyON 1 log-update\n"x"\n---\n\n'
        )

        self.assertEqual(self.service.log_updates(LogUpdatesArg.START), "x")

        self.mock_connection.exclusive.assert_called_once_with()
        self.assertEqual(held, [])

    def test_string_argument(self):
        self.service.log_updates("restart")
        self.assert_sent("log-updates restart")

    def test_invalid_argument(self):
        with self.assertRaises(ValidationError):
            self.service.log_updates("pause")
        self.mock_connection.execute.assert_not_called()
        self.mock_connection.execute_eval.assert_not_called()

    def test_malformed_log(self):
        self.mock_connection.execute_eval.return_value = b'PyON 1 log-update\n"x"\n---'
        with self.assertRaises(FormatError):
            self.service.log_updates(LogUpdatesArg.STOP)


class TestSlotCommands(CommandServiceTestCase):
    """Test slot commands and their argument checks."""

    def test_slot_commands(self):
        cases = [
            (self.service.always_on, 0, "always_on 0"),
            (self.service.finish, 1, "finish 1"),
            (self.service.on_idle, 2, "on_idle 2"),
            (self.service.pause_slot, 3, "pause 3"),
            (self.service.unpause_slot, 10, "unpause 10"),
        ]

        for method, slot, command in cases:
            with self.subTest(command=command):
                self.mock_connection.execute.reset_mock()
                method(slot)
                self.assert_sent(command)

    def test_all_slot_commands(self):
        cases = [
            (self.service.finish_all, "finish"),
            (self.service.on_idle_all, "on_idle"),
            (self.service.pause_all, "pause"),
            (self.service.unpause_all, "unpause"),
        ]

        for method, command in cases:
            with self.subTest(command=command):
                self.mock_connection.execute.reset_mock()
                method()
                self.assert_sent(command)

    def test_invalid_slot(self):
        cases = [
            ("0", ErrorCodes.TYPE_ERROR),
            (True, ErrorCodes.TYPE_ERROR),
            (1.0, ErrorCodes.TYPE_ERROR),
            (-1, ErrorCodes.OUT_OF_RANGE),
        ]

        for slot, code in cases:
            with self.subTest(slot=slot):
                with self.assertRaises(ValidationError) as cm:
                    self.service.pause_slot(slot)
                self.assertEqual(cm.exception.error_code, code)
        self.mock_connection.execute.assert_not_called()

    def test_slot_info(self):
        body = ('[{"id": "00", "status": "RUNNING", "description": "cpu:4",'
                ' "options": {"paused": "false"}, "reason": None, "idle": False}]')
        self.mock_connection.execute.return_value = pyon("slots", body)

        slots = self.service.slot_info()

        self.assertEqual(len(slots), 1)
        self.assertIsInstance(slots[0], SlotInfo)
        self.assertEqual(slots[0].description, "cpu:4")
        self.assertEqual(slots[0].reason, "")
        self.assert_sent("slot-info")

    def test_slot_info_not_a_list(self):
        self.mock_connection.execute.return_value = pyon("slots", "{}")
        with self.assertRaises(FormatError) as cm:
            self.service.slot_info()
        self.assertEqual(cm.exception.error_code, ErrorCodes.SHAPE_MISMATCH)

    def test_queue_info(self):
        body = ('[{"id": "00", "state": "RUNNING", "project": 16435, "eta": "1 hours 5 mins",'
                ' "ppd": "98765", "deadline": "2020-05-03T12:00:00Z", "unknown": 1}]')
        self.mock_connection.execute.return_value = pyon("units", body)

        units = self.service.queue_info()

        self.assertEqual(len(units), 1)
        self.assertIsInstance(units[0], SlotQueueInfo)
        self.assertEqual(units[0].project, 16435)
        self.assertEqual(units[0].eta, timedelta(hours=1, minutes=5))
        self.assertEqual(units[0].ppd, 98765)
        self.assertEqual(units[0].deadline.day, 3)
        self.assert_sent("queue-info")

    def test_queue_info_bad_field(self):
        self.mock_connection.execute.return_value = pyon("units", '[{"id": "00", "project": "soon"}]')

        with self.assertRaises(FormatError) as cm:
            self.service.queue_info()

        self.assertEqual(cm.exception.error_code, ErrorCodes.SHAPE_MISMATCH)
        self.assertEqual(cm.exception.context['field'], "project")

    def test_simulation_info(self):
        body = '{"user": "folder", "project": 16435, "progress": 0.5, "slot": 1}'
        self.mock_connection.execute.return_value = pyon("simulation-info", body)

        info = self.service.simulation_info(1)

        self.assertIsInstance(info, SimulationInfo)
        self.assertEqual(info.project, 16435)
        self.assertEqual(info.progress, 0.5)
        self.assert_sent("simulation-info 1")


class TestOptions(CommandServiceTestCase):
    """Test option get and set."""

    def test_options_get(self):
        body = '{"power": "light", "paused": "false", "cpus": "-1", "user": "folder"}'
        self.mock_connection.execute.return_value = pyon("options", body)

        options = self.service.options_get()

        self.assertIsInstance(options, Options)
        self.assertIs(options.power, Power.LIGHT)
        self.assertEqual(options.cpus, -1)
        self.assert_sent("options -a")

    def test_options_set(self):
        cases = [
            ("power", "full", "options power=full"),
            ("power", Power.MEDIUM, "options power=MEDIUM"),
            ("paused", True, "options paused=true"),
            ("gpu", False, "options gpu=false"),
            ("cpus", 4, "options cpus=4"),
            ("user", "", "options user="),
        ]

        for key, value, command in cases:
            with self.subTest(key=key, value=value):
                self.mock_connection.execute.reset_mock()
                self.service.options_set(key, value)
                self.assert_sent(command)

    def test_options_set_rejects_injection(self):
        cases = [
            ("power=full user", "x"),
            ("power full", "x"),
            ("!power", "x"),
            ("", "x"),
            (None, "x"),
            ("user", "folder team=1"),
        ]

        for key, value in cases:
            with self.subTest(key=key, value=value):
                with self.assertRaises(ValidationError):
                    self.service.options_set(key, value)
        self.mock_connection.execute.assert_not_called()


if __name__ == '__main__':
    unittest.main()
