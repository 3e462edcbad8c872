"""Tests for the response envelope decode rule."""

import pytest
from pydantic import BaseModel, ValidationError

from villabook.api.envelope import ApiResponse, decode_envelope, is_envelope


class Villa(BaseModel):
    id: str
    name: str


class TestDecodeEnvelope:
    def test_envelope_passes_through(self):
        resp = decode_envelope({"success": True, "message": "Fetched", "data": {"id": 1}})
        assert isinstance(resp, ApiResponse)
        assert resp.model_dump() == {"success": True, "message": "Fetched", "data": {"id": 1}}

    def test_envelope_without_message_gets_default(self):
        resp = decode_envelope({"success": True, "data": [1]})
        assert resp.message == "Success"

    def test_failed_envelope_keeps_flag(self):
        resp = decode_envelope({"success": False})
        assert resp.success is False
        assert resp.message == "Request failed"

    @pytest.mark.parametrize(
        "payload",
        [{"id": "v1"}, [1, 2], "plain text", 7, None, {"success": "yes"}],
    )
    def test_non_envelope_is_wrapped(self, payload):
        resp = decode_envelope(payload)
        assert resp.success is True
        assert resp.message == "Success"
        assert resp.data == payload

    def test_data_model(self):
        resp = decode_envelope({"success": True, "data": {"id": "v1", "name": "Palm"}}, Villa)
        assert resp.data == Villa(id="v1", name="Palm")

    def test_data_model_rejects_bad_data(self):
        with pytest.raises(ValidationError):
            decode_envelope({"id": "v1"}, Villa)

    def test_data_model_skipped_for_empty_data(self):
        assert decode_envelope({"success": True}, Villa).data is None

    def test_is_envelope(self):
        assert is_envelope({"success": False, "message": "x"})
        assert not is_envelope({"ok": True})
        assert not is_envelope([{"success": True}])
