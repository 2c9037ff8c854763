"""Tests for object enumeration."""

import pytest

from bac_py.services.errors import BACnetError, BACnetTimeoutError
from bac_py.types.enums import ErrorClass, ErrorCode, ObjectType
from bac_py.types.primitives import ObjectIdentifier

from bacnet_scan.objects import list_objects
from tests.helpers import PEER, make_client, make_device, make_session


class TestListObjects:
    async def test_returns_device_order(self):
        client = make_client()
        objects = [
            ObjectIdentifier(ObjectType.DEVICE, 1000),
            ObjectIdentifier(ObjectType.ANALOG_INPUT, 1),
            ObjectIdentifier(ObjectType.BINARY_OUTPUT, 4),
        ]
        client.get_object_list.return_value = objects
        result = await list_objects(make_session(client), make_device())
        assert result == objects
        client.get_object_list.assert_awaited_once_with(PEER, 1000)

    async def test_empty_list(self):
        assert await list_objects(make_session(), make_device()) == []

    async def test_unknown_property_yields_empty(self):
        client = make_client()
        client.get_object_list.side_effect = BACnetError(
            ErrorClass.PROPERTY, ErrorCode.UNKNOWN_PROPERTY
        )
        assert await list_objects(make_session(client), make_device()) == []

    async def test_other_errors_propagate(self):
        client = make_client()
        client.get_object_list.side_effect = BACnetError(
            ErrorClass.OBJECT, ErrorCode.UNKNOWN_OBJECT
        )
        with pytest.raises(BACnetError):
            await list_objects(make_session(client), make_device())

    async def test_timeout_propagates(self):
        client = make_client()
        client.get_object_list.side_effect = BACnetTimeoutError("no reply")
        with pytest.raises(BACnetTimeoutError):
            await list_objects(make_session(client), make_device())
