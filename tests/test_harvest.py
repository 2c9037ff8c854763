"""Tests for batched property harvesting."""

import pytest

from bac_py.encoding.primitives import (
    encode_application_boolean,
    encode_application_character_string,
    encode_application_enumerated,
    encode_application_real,
)
from bac_py.services.errors import BACnetTimeoutError
from bac_py.services.read_property_multiple import ReadResultElement
from bac_py.types.enums import (
    EngineeringUnits,
    ErrorClass,
    ErrorCode,
    ObjectType,
    PropertyIdentifier,
)
from bac_py.types.primitives import ObjectIdentifier

from bacnet_scan.harvest import build_read_specs, decode_cell, group_by_object, harvest
from bacnet_scan.properties import resolve_properties
from bacnet_scan.values import DecodedValue, ValueKind
from tests.helpers import PEER, make_client, make_device, make_session, result_for, rpm_ack

AI1 = ObjectIdentifier(ObjectType.ANALOG_INPUT, 1)
BO4 = ObjectIdentifier(ObjectType.BINARY_OUTPUT, 4)
DEV = ObjectIdentifier(ObjectType.DEVICE, 1000)


class TestBuildReadSpecs:
    def test_one_spec_per_object(self):
        specs = build_read_specs([AI1, BO4])
        assert [s.object_identifier for s in specs] == [AI1, BO4]
        refs = [r.property_identifier for r in specs[0].list_of_property_references]
        assert tuple(refs) == resolve_properties(ObjectType.ANALOG_INPUT)


class TestDecodeCell:
    def test_access_error(self):
        elem = ReadResultElement(
            property_identifier=PropertyIdentifier.DESCRIPTION,
            property_access_error=(ErrorClass.PROPERTY, ErrorCode.UNKNOWN_PROPERTY),
        )
        assert decode_cell(elem) == DecodedValue.error("PROPERTY: UNKNOWN_PROPERTY")

    def test_decode_failure_is_contained(self):
        elem = ReadResultElement(
            property_identifier=PropertyIdentifier.PRESENT_VALUE,
            property_value=encode_application_real(1.0)[:2],
        )
        value = decode_cell(elem)
        assert value.is_error
        assert value.value.startswith("caught exception: ")

    def test_value(self):
        elem = ReadResultElement(
            property_identifier=PropertyIdentifier.PRESENT_VALUE,
            property_value=encode_application_real(20.0),
        )
        assert decode_cell(elem) == DecodedValue(ValueKind.REAL, 20.0)


class TestHarvest:
    async def test_empty_object_list_sends_nothing(self):
        session = make_session()
        assert await harvest(session, make_device(), []) == {}
        session.client.read_property_multiple.assert_not_awaited()

    async def test_single_batched_request(self):
        client = make_client()
        client.read_property_multiple.return_value = rpm_ack()
        await harvest(make_session(client), make_device(), [AI1, BO4, DEV])
        client.read_property_multiple.assert_awaited_once()
        address, specs = client.read_property_multiple.await_args.args
        assert address == PEER
        assert [s.object_identifier for s in specs] == [AI1, BO4, DEV]

    async def test_per_cell_isolation(self):
        client = make_client()
        client.read_property_multiple.return_value = rpm_ack(
            result_for(
                AI1,
                {
                    PropertyIdentifier.OBJECT_NAME: encode_application_character_string("OAT"),
                    PropertyIdentifier.DESCRIPTION: encode_application_character_string("Outside"),
                    PropertyIdentifier.PRESENT_VALUE: b"\x44\x00",
                    PropertyIdentifier.UNITS: encode_application_enumerated(
                        EngineeringUnits.DEGREES_CELSIUS
                    ),
                    PropertyIdentifier.OUT_OF_SERVICE: encode_application_boolean(False),
                },
            )
        )
        table = await harvest(make_session(client), make_device(), [AI1])
        assert len(table) == 5
        errors = [key for key, v in table.items() if v.is_error]
        assert errors == [(AI1, PropertyIdentifier.PRESENT_VALUE)]
        bad = table[(AI1, PropertyIdentifier.PRESENT_VALUE)]
        assert bad.value.startswith("caught exception: ")
        assert table[(AI1, PropertyIdentifier.OBJECT_NAME)].value == "OAT"
        assert table[(AI1, PropertyIdentifier.DESCRIPTION)].value == "Outside"
        assert table[(AI1, PropertyIdentifier.UNITS)].value == "degrees-celsius"
        assert table[(AI1, PropertyIdentifier.OUT_OF_SERVICE)].value is False

    async def test_missing_cells_are_marked(self):
        client = make_client()
        client.read_property_multiple.return_value = rpm_ack(
            result_for(
                AI1, {PropertyIdentifier.OBJECT_NAME: encode_application_character_string("OAT")}
            )
        )
        table = await harvest(make_session(client), make_device(), [AI1, BO4])
        assert len(table) == 9
        assert table[(AI1, PropertyIdentifier.OBJECT_NAME)].value == "OAT"
        assert table[(BO4, PropertyIdentifier.PRESENT_VALUE)] == DecodedValue.error(
            "missing from response"
        )

    async def test_request_order_preserved(self):
        client = make_client()
        client.read_property_multiple.return_value = rpm_ack()
        table = await harvest(make_session(client), make_device(), [BO4, AI1])
        assert [oid for oid, _ in table][0] == BO4
        assert [oid for oid, _ in table][-1] == AI1

    async def test_request_failure_propagates(self):
        client = make_client()
        client.read_property_multiple.side_effect = BACnetTimeoutError("timeout")
        with pytest.raises(BACnetTimeoutError):
            await harvest(make_session(client), make_device(), [AI1])


class TestGroupByObject:
    def test_nested_by_type_and_instance(self):
        table = {
            (AI1, PropertyIdentifier.OBJECT_NAME): DecodedValue(ValueKind.STRING, "OAT"),
            (AI1, PropertyIdentifier.PRESENT_VALUE): DecodedValue(ValueKind.REAL, 1.0),
            (BO4, PropertyIdentifier.OBJECT_NAME): DecodedValue(ValueKind.STRING, "Fan"),
        }
        grouped = group_by_object(table)
        assert set(grouped) == {0, 4}
        assert grouped[0][1] == {
            "object-name": DecodedValue(ValueKind.STRING, "OAT"),
            "present-value": DecodedValue(ValueKind.REAL, 1.0),
        }
        assert grouped[4][4]["object-name"].value == "Fan"
