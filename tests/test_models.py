"""
Tests for py2fah data models.
"""

import json
import unittest
from dataclasses import fields
from datetime import timedelta

from py2fah.core.errors import FormatError, ValidationError
from py2fah.models.base import string_bool, string_int, to_int
from py2fah.models.connection import (
    DEFAULT_ADDR,
    DEFAULT_PORT,
    ConnectionConfig,
)
from py2fah.models.info import Info
from py2fah.models.options import OPTION_FIELDS, Options, Power
from py2fah.models.slot import SimulationInfo, SlotInfo, SlotQueueInfo


class TestConnectionConfig(unittest.TestCase):
    """Test ConnectionConfig."""

    def test_defaults(self):
        config = ConnectionConfig()
        self.assertEqual(config.port, DEFAULT_PORT)
        self.assertEqual(DEFAULT_ADDR, ":36330")
        self.assertEqual(config.address, "127.0.0.1:36330")
        self.assertEqual(config.validate(), (True, []))

    def test_from_address(self):
        cases = [
            (":36330", ("127.0.0.1", 36330)),
            ("36331", ("127.0.0.1", 36331)),
            ("fah-host", ("fah-host", 36330)),
            ("192.168.1.10:4000", ("192.168.1.10", 4000)),
        ]

        for address, (host, port) in cases:
            with self.subTest(address=address):
                config = ConnectionConfig.from_address(address)
                self.assertEqual((config.host, config.port), (host, port))

    def test_from_address_keeps_timeouts(self):
        config = ConnectionConfig.from_address(":36330", io_timeout=3.0)
        self.assertEqual(config.io_timeout, 3.0)

    def test_from_address_rejects_bad_port(self):
        for address in ("host:port", "", "host:"):
            with self.subTest(address=address):
                with self.assertRaises(ValueError):
                    ConnectionConfig.from_address(address)

    def test_validate(self):
        invalid = [
            ConnectionConfig(port=0),
            ConnectionConfig(port=65536),
            ConnectionConfig(port=True),
            ConnectionConfig(host="  "),
            ConnectionConfig(connect_timeout=0),
            ConnectionConfig(io_timeout="5"),
        ]

        for config in invalid:
            with self.subTest(config=config):
                valid, errors = config.validate()
                self.assertFalse(valid)
                self.assertEqual(len(errors), 1)

    def test_frozen(self):
        config = ConnectionConfig()
        with self.assertRaises(AttributeError):
            config.port = 1


class TestConverters(unittest.TestCase):
    """Test string-typed scalar converters."""

    def test_string_bool(self):
        self.assertTrue(string_bool("true"))
        self.assertFalse(string_bool("false"))
        for text in ("True", "1", "", "yes"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    string_bool(text)

    def test_string_int(self):
        self.assertEqual(string_int("42"), 42)
        self.assertEqual(string_int("-3"), -3)
        self.assertEqual(string_int(""), 0)
        with self.assertRaises(ValueError):
            string_int("4.5")
        with self.assertRaises(ValueError):
            string_int(4)

    def test_to_int(self):
        self.assertEqual(to_int(3), 3)
        self.assertEqual(to_int(3.0), 3)
        with self.assertRaises(ValueError):
            to_int(True)
        with self.assertRaises(ValueError):
            to_int("3")

    def test_power(self):
        self.assertIs(Power.from_string("light"), Power.LIGHT)
        self.assertIs(Power.from_string("FULL"), Power.FULL)
        self.assertIs(Power.from_string("Medium"), Power.MEDIUM)
        self.assertIs(Power.from_string(""), Power.NULL)
        self.assertEqual(str(Power.FULL), "FULL")
        with self.assertRaises(ValueError):
            Power.from_string("max")


class TestOptions(unittest.TestCase):
    """Test Options population from the options mapping."""

    def test_from_dict(self):
        options = Options.from_dict({
            "power": "medium",
            "paused": "true",
            "cpus": "4",
            "user": "folder",
            "team": "0",
            "checkpoint": "",
            "command-port": "36330",
        })

        self.assertIs(options.power, Power.MEDIUM)
        self.assertTrue(options.paused)
        self.assertEqual(options.cpus, 4)
        self.assertEqual(options.user, "folder")
        self.assertEqual(options.team, 0)
        self.assertEqual(options.checkpoint, 0)
        self.assertEqual(options.command_port, 36330)
        self.assertEqual(options.extra, {})

    def test_defaults_for_missing_keys(self):
        options = Options.from_dict({})
        self.assertIs(options.power, Power.NULL)
        self.assertFalse(options.gpu)
        self.assertEqual(options.passkey, "")

    def test_unknown_keys_kept(self):
        options = Options.from_dict({"fold-anon": "false", "new-option": "x"})
        self.assertEqual(options.extra, {"new-option": "x"})

    def test_bad_value(self):
        with self.assertRaises(ValidationError) as cm:
            Options.from_dict({"paused": "maybe"})
        self.assertEqual(cm.exception.context['field'], "paused")

        with self.assertRaises(ValidationError):
            Options.from_dict({"power": "turbo"})

    def test_table_covers_every_attribute(self):
        attributes = {attribute for attribute, _ in OPTION_FIELDS.values()}
        self.assertEqual(attributes, {f.name for f in fields(Options)} - {"extra"})
        self.assertEqual(len(OPTION_FIELDS), 122)

    def test_to_client_strings(self):
        options = Options.from_dict({"power": "light", "paused": "true", "cpus": "2", "x-y": "z"})
        strings = options.to_client_strings()

        self.assertEqual(strings["power"], "LIGHT")
        self.assertEqual(strings["paused"], "true")
        self.assertEqual(strings["cpus"], "2")
        self.assertEqual(strings["x-y"], "z")

    def test_to_json(self):
        data = json.loads(Options.from_dict({"power": "full"}).to_json())
        self.assertEqual(data["power"], "FULL")


class TestSlotRecords(unittest.TestCase):
    """Test slot, queue and simulation records."""

    def test_slot_info(self):
        slots = SlotInfo.list_from_rows([{
            "id": "00",
            "status": "RUNNING",
            "description": "cpu:3",
            "options": {"machine-id": "1", "paused": "false"},
            "reason": "",
            "idle": False,
        }])

        self.assertEqual(len(slots), 1)
        slot = slots[0]
        self.assertEqual(slot.id, "00")
        self.assertEqual(slot.status, "RUNNING")
        self.assertFalse(slot.idle)
        self.assertEqual(slot.slot_options.machine_id, "1")
        self.assertFalse(slot.slot_options.paused)

    def test_slot_info_rejects_wrong_types(self):
        with self.assertRaises(ValidationError):
            SlotInfo.from_dict({"idle": "false"})
        with self.assertRaises(TypeError):
            SlotInfo.list_from_rows({"id": "00"})
        with self.assertRaises(TypeError):
            SlotInfo.from_dict(["00"])

    def test_queue_info(self):
        unit = SlotQueueInfo.from_dict({
            "id": "01",
            "state": "RUNNING",
            "project": 14576,
            "run": 0,
            "clone": 2,
            "gen": 48,
            "percentdone": "12.34%",
            "eta": "2 hours 10 mins",
            "ppd": "123456",
            "creditestimate": "",
            "nextattempt": "0.00 secs",
            "timeremaining": "unknowntime",
            "assigned": "2020-05-01T12:00:00Z",
            "timeout": "<invalid>",
            "tpf": "3 mins 40 secs",
            "basecredit": "9405",
            "unexpected": True,
        })

        self.assertEqual(unit.project, 14576)
        self.assertEqual(unit.percent_done, "12.34%")
        self.assertEqual(unit.eta, timedelta(hours=2, minutes=10))
        self.assertEqual(unit.ppd, 123456)
        self.assertEqual(unit.credit_estimate, 0)
        self.assertEqual(unit.next_attempt, timedelta(0))
        self.assertTrue(unit.time_remaining.is_unknown_time())
        self.assertEqual(unit.assigned.year, 2020)
        self.assertTrue(unit.timeout.is_invalid())
        self.assertTrue(unit.deadline.is_invalid())
        self.assertEqual(unit.tpf, timedelta(minutes=3, seconds=40))
        self.assertEqual(unit.base_credit, 9405)

    def test_queue_info_bad_duration(self):
        with self.assertRaises(ValidationError) as cm:
            SlotQueueInfo.from_dict({"eta": "soon"})
        self.assertEqual(cm.exception.context['field'], "eta")

    def test_queue_info_to_dict(self):
        data = SlotQueueInfo.from_dict({"eta": "unknowntime", "deadline": "<invalid>"}).to_dict()
        self.assertEqual(data["eta"], "unknowntime")
        self.assertEqual(data["deadline"], "<invalid>")

    def test_simulation_info(self):
        info = SimulationInfo.from_dict({
            "user": "folder",
            "team": "0",
            "project": 14576,
            "core_type": 162,
            "total_iterations": 500000,
            "iterations_done": 25000,
            "start_time": "2020-05-01T12:00:00Z",
            "eta": 3600,
            "progress": 0,
            "slot": 1,
        })

        self.assertEqual(info.user, "folder")
        self.assertEqual(info.core_type, 162)
        self.assertEqual(info.progress, 0.0)
        self.assertIsInstance(info.progress, float)
        self.assertEqual(info.start_time.month, 5)
        self.assertEqual(info.slot, 1)


def _info_sections():
    return [
        ["FAHClient",
         ["Version", "7.6.21"],
         ["Author", "Joseph Coffland"],
         ["Build Host", "discarded"]],
        ["CBang", ["Date", "Oct 20 2020"], ["Revision", "abc"]],
        ["System",
         ["CPU", "AMD Ryzen"],
         ["CPU ID", "AuthenticAMD"],
         ["CPUs", "16"],
         ["OS Arch", "AMD64"],
         ["GPUs", "1"],
         ["GPU 0", "Bus:1 Slot:0 Func:0 NVIDIA:8"]],
        ["libFAH", ["Branch", "fah/v7.6"]],
    ]


class TestInfo(unittest.TestCase):
    """Test Info population from the info reply."""

    def test_from_list(self):
        info = Info.from_list(_info_sections())

        self.assertEqual(info.fah_client.version, "7.6.21")
        self.assertEqual(info.fah_client.author, "Joseph Coffland")
        self.assertEqual(info.cbang.date, "Oct 20 2020")
        self.assertEqual(info.cbang.revision, "abc")
        self.assertEqual(info.system.cpu_id, "AuthenticAMD")
        self.assertEqual(info.system.cpus, 16)
        self.assertEqual(info.system.os_arch, "AMD64")
        self.assertEqual(info.system.gpus, 1)
        self.assertEqual(info.system.devices, {"GPU 0": "Bus:1 Slot:0 Func:0 NVIDIA:8"})
        self.assertEqual(info.lib_fah.branch, "fah/v7.6")

    def test_extra_sections_ignored(self):
        sections = _info_sections() + [["Extra", ["Key", "Value"]]]
        self.assertEqual(Info.from_list(sections).fah_client.version, "7.6.21")

    def test_rejects_wrong_layout(self):
        bad_layouts = [
            [],
            _info_sections()[:3],
            [_info_sections()[1], _info_sections()[0]] + _info_sections()[2:],
            {"FAHClient": []},
        ]

        for sections in bad_layouts:
            with self.subTest(sections=sections):
                with self.assertRaises(FormatError):
                    Info.from_list(sections)

    def test_bad_numeric_field(self):
        sections = _info_sections()
        sections[2].append(["CPUs", "many"])
        with self.assertRaises(ValidationError):
            Info.from_list(sections)


if __name__ == '__main__':
    unittest.main()
