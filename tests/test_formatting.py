"""Tests for CLI console output helpers."""

import orjson

from bacnet_scan.formatting import object_type_rows, print_error, print_json, print_table
from bacnet_scan.report import DeviceReport, ObjectReport, ScanResult


def _device(instance: int, objects) -> DeviceReport:
    return DeviceReport(
        instance=instance,
        name=None,
        ip_address="",
        mac_address="",
        network_number=0,
        updated="2024-03-15T10:00:00+00:00",
        objects=objects,
    )


class TestPrintTable:
    def test_columns_aligned(self, capsys):
        print_table(["Instance", "Name"], [[1, "AHU-1"], [1000, "Boiler plant"]])
        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "Instance  Name",
            "--------  ------------",
            "1         AHU-1",
            "1000      Boiler plant",
        ]

    def test_short_row_padded(self, capsys):
        print_table(["A", "B"], [["x"]])
        assert capsys.readouterr().out.splitlines()[-1] == "x"


class TestPrintJson:
    def test_indented(self, capsys):
        print_json({"devices": [5, 2]})
        out = capsys.readouterr().out
        assert orjson.loads(out) == {"devices": [5, 2]}
        assert "\n  " in out

    def test_error_modes(self, capsys):
        print_error("boom", use_json=True)
        assert orjson.loads(capsys.readouterr().out) == {"error": "boom"}
        print_error("boom")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Error: boom"


class TestObjectTypeRows:
    def test_counts_across_devices(self):
        result = ScanResult(
            devices={
                1: _device(
                    1, {0: {1: ObjectReport({}), 2: ObjectReport({})}, 8: {1: ObjectReport({})}}
                ),
                2: _device(2, {0: {1: ObjectReport({})}, 8: {2: ObjectReport({})}}),
            }
        )
        assert object_type_rows(result) == [["Analog Input", 0, 3], ["Device", 8, 2]]
