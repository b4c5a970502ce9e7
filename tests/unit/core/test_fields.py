"""
Unit tests for the field registry.

Tests cover:
- resolve_fields(): validation, dedupe, order, semicolon and list input
- Unknown field names raise FieldConfigError naming the field
- AlertField metadata strings, flattened paths and right-click links
- FieldRegistry.register(): host calls, handles, links, session view
- Host handles outside the one-byte range raise FieldConfigError
"""

from unittest.mock import MagicMock

import pytest

from suricata_wise.errors import ConfigError, FieldConfigError
from suricata_wise.fields import (
    ALLOWED_FIELDS,
    AlertField,
    FieldRegistry,
    initialize_fields,
    resolve_fields,
    split_setting,
)

BASE_URL = "http://evebox.local:5636"


def _mock_api() -> MagicMock:
    api = MagicMock()
    api.add_field.side_effect = range(100, 200)
    return api


class TestResolveFields:
    """Test configured field validation."""

    def test_semicolon_string(self) -> None:
        assert resolve_fields("severity;signature") == [AlertField.SEVERITY, AlertField.SIGNATURE]

    def test_trailing_semicolon_ignored(self) -> None:
        assert resolve_fields("severity;signature;category;") == [
            AlertField.SEVERITY,
            AlertField.SIGNATURE,
            AlertField.CATEGORY,
        ]

    def test_list_input(self) -> None:
        assert resolve_fields(["_id", "flow_id"]) == [AlertField.ID, AlertField.FLOW_ID]

    def test_duplicates_first_wins(self) -> None:
        assert resolve_fields("signature;severity;signature") == [
            AlertField.SIGNATURE,
            AlertField.SEVERITY,
        ]

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(FieldConfigError) as exc_info:
            resolve_fields("sid;signature")
        assert exc_info.value.field_name == "sid"
        assert "sid" in str(exc_info.value)

    def test_unknown_field_message_lists_allowed(self) -> None:
        with pytest.raises(FieldConfigError, match="signature_id"):
            resolve_fields("bogus")

    def test_field_config_error_is_config_error(self) -> None:
        with pytest.raises(ConfigError):
            resolve_fields("sid")

    def test_empty_rejected(self) -> None:
        with pytest.raises(FieldConfigError) as exc_info:
            resolve_fields(";;")
        assert exc_info.value.field_name is None

    def test_none_rejected(self) -> None:
        with pytest.raises(FieldConfigError):
            resolve_fields(None)

    def test_all_allowed(self) -> None:
        assert len(resolve_fields(";".join(ALLOWED_FIELDS))) == 9


class TestSplitSetting:
    """Test semicolon splitting shared with the config module."""

    def test_strips_whitespace(self) -> None:
        assert split_setting(" a ; b ;") == ["a", "b"]

    def test_none(self) -> None:
        assert split_setting(None) == []

    def test_list(self) -> None:
        assert split_setting(["a", " ", "b"]) == ["a", "b"]


class TestAlertField:
    """Test the static field table."""

    def test_allowed_set(self) -> None:
        assert set(ALLOWED_FIELDS) == {
            "signature_id", "severity", "signature", "category",
            "host", "in_iface", "flow_id", "_id", "_index",
        }

    def test_metadata_string(self) -> None:
        assert AlertField.SIGNATURE_ID.metadata == (
            "field:suricata.signature_id;db:suricata.signature_id-term;kind:integer;"
            "friendly:SID;help:Suricata Signature ID;count:false"
        )

    def test_flattened_paths(self) -> None:
        assert AlertField.SEVERITY.flattened_path == "event._source.alert.severity"
        assert AlertField.HOST.flattened_path == "event._source.host"
        assert AlertField.ID.flattened_path == "event._id"
        assert AlertField.INDEX.flattened_path == "event._index"
        assert AlertField.FLOW_ID.flattened_path == "event._source.flow_id"

    def test_from_identifier(self) -> None:
        assert AlertField.from_identifier("in_iface") is AlertField.IN_IFACE

    def test_event_link(self) -> None:
        name, definition = AlertField.ID.right_click(BASE_URL)
        assert name == "EveBoxEventLink"
        assert definition == {
            "name": "EveBox EVENT",
            "url": f"{BASE_URL}/#/event/%TEXT%",
            "fields": "suricata._id",
        }

    def test_flow_link(self) -> None:
        name, definition = AlertField.FLOW_ID.right_click(BASE_URL)
        assert name == "EveBoxFlowLink"
        assert definition["url"] == f"{BASE_URL}/#/events;q=flow_id%3A%22%TEXT%%22"
        assert definition["fields"] == "suricata.flow_id"

    def test_no_link_for_plain_fields(self) -> None:
        assert AlertField.SEVERITY.right_click(BASE_URL) is None


class TestFieldRegistry:
    """Test registration with the host pipeline."""

    def setup_method(self) -> None:
        self.api = _mock_api()
        self.registry = FieldRegistry(self.api, BASE_URL)

    def test_add_field_called_with_metadata(self) -> None:
        self.registry.register([AlertField.SEVERITY, AlertField.SIGNATURE])
        declarations = [c.args[0] for c in self.api.add_field.call_args_list]
        assert declarations == [AlertField.SEVERITY.metadata, AlertField.SIGNATURE.metadata]

    def test_handles_stored_in_order(self) -> None:
        descriptors = self.registry.register([AlertField.SEVERITY, AlertField.SIGNATURE])
        assert [(d.identifier, d.handle) for d in descriptors] == [("severity", 100), ("signature", 101)]

    def test_no_right_click_without_linked_fields(self) -> None:
        self.registry.register([AlertField.SEVERITY])
        self.api.add_right_click.assert_not_called()

    def test_right_clicks_for_id_and_flow_id(self) -> None:
        self.registry.register([AlertField.ID, AlertField.SEVERITY, AlertField.FLOW_ID])
        names = [c.args[0] for c in self.api.add_right_click.call_args_list]
        assert names == ["EveBoxEventLink", "EveBoxFlowLink"]

    def test_view_registered(self) -> None:
        self.registry.register([AlertField.SEVERITY, AlertField.SIGNATURE])
        self.api.add_view.assert_called_once()
        name, template = self.api.add_view.call_args.args
        assert name == "suricata"
        assert template.startswith("if (session.suricata)\n")
        assert "+arrayList(session.suricata, 'severity-term', 'severity', 'suricata.severity')" in template
        assert "+arrayList(session.suricata, 'signature-term', 'signature', 'suricata.signature')" in template

    def test_register_twice_rejected(self) -> None:
        self.registry.register([AlertField.SEVERITY])
        with pytest.raises(RuntimeError):
            self.registry.register([AlertField.SEVERITY])

    def test_initialize_fields(self) -> None:
        registry = initialize_fields(self.api, BASE_URL, "severity;_id")
        assert [d.identifier for d in registry.descriptors] == ["severity", "_id"]
        self.api.add_right_click.assert_called_once()

    def test_initialize_fields_rejects_before_registering(self) -> None:
        with pytest.raises(FieldConfigError):
            initialize_fields(self.api, BASE_URL, "severity;sid")
        self.api.add_field.assert_not_called()

    @pytest.mark.parametrize("handle", [256, -1, None])
    def test_handle_outside_one_byte_rejected(self, handle) -> None:
        self.api.add_field.side_effect = [0, handle]
        with pytest.raises(FieldConfigError, match="signature") as excinfo:
            self.registry.register([AlertField.SEVERITY, AlertField.SIGNATURE])
        assert excinfo.value.field_name == "signature"
        self.api.add_view.assert_not_called()

    def test_handle_255_accepted(self) -> None:
        self.api.add_field.side_effect = [255]
        descriptors = self.registry.register([AlertField.SEVERITY])
        assert descriptors[0].handle == 255
