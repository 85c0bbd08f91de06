"""
Tests for normalize_payload().

Each sendable type owns exactly one request field; foreign fields, missing
values and unresolvable references are rejected with distinct error codes.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from core.exceptions import NotFoundError, ValidationError
from messaging.constants import MESSAGE_CONFIG, ErrorCode
from messaging.payloads import normalize_payload


class TestNormalizePayloadTypes:
    """Type acceptance."""

    @pytest.mark.parametrize("message_type", ["info", "deleted", "sticker", ""])
    def test_unsendable_types_are_rejected(self, runtime, message_type):
        with pytest.raises(ValidationError) as exc_info:
            normalize_payload(message_type, {"text": "hi"}, runtime.resolvers)

        assert exc_info.value.error_code == ErrorCode.INVALID_MESSAGE_TYPE

    def test_text_maps_to_text_field(self, runtime):
        assert normalize_payload("text", {"text": " hi "}, runtime.resolvers) == {
            "text": "hi"
        }

    def test_image_maps_to_image_url(self, runtime):
        fields = normalize_payload(
            "image", {"image_url": "https://cdn.example.com/a.png"}, runtime.resolvers
        )

        assert fields == {"image_url": "https://cdn.example.com/a.png"}


class TestNormalizePayloadFields:
    """Field ownership."""

    def test_missing_value_is_invalid(self, runtime):
        with pytest.raises(ValidationError) as exc_info:
            normalize_payload("text", {"text": "   "}, runtime.resolvers)

        assert exc_info.value.error_code == ErrorCode.INVALID_PAYLOAD
        assert "text" in exc_info.value.details["fields"]

    def test_foreign_field_is_invalid(self, runtime):
        """
        A text message may not also carry an image.

        Why it matters: exactly one payload field is persisted per message.
        """
        with pytest.raises(ValidationError) as exc_info:
            normalize_payload(
                "text",
                {"text": "hi", "image_url": "https://cdn.example.com/a.png"},
                runtime.resolvers,
            )

        assert exc_info.value.error_code == ErrorCode.INVALID_PAYLOAD
        assert "image_url" in exc_info.value.details["fields"]

    def test_blank_foreign_fields_are_ignored(self, runtime):
        fields = normalize_payload(
            "text", {"text": "hi", "image_url": "", "post_id": None}, runtime.resolvers
        )

        assert fields == {"text": "hi"}

    def test_text_over_limit_is_invalid(self, runtime):
        with pytest.raises(ValidationError) as exc_info:
            normalize_payload(
                "text",
                {"text": "x" * (MESSAGE_CONFIG.MAX_TEXT_LENGTH + 1)},
                runtime.resolvers,
            )

        assert exc_info.value.error_code == ErrorCode.INVALID_PAYLOAD


class TestNormalizePayloadReferences:
    """Reference resolution."""

    def test_known_product_resolves(self, runtime):
        assert normalize_payload("product", {"product_id": 42}, runtime.resolvers) == {
            "product_ref": "42",
            "reference": {"id": 42, "title": "Vintage lamp"},
        }

    def test_unknown_post_is_not_found(self, runtime):
        with pytest.raises(NotFoundError) as exc_info:
            normalize_payload("post", {"post_id": "999"}, runtime.resolvers)

        assert exc_info.value.error_code == ErrorCode.REFERENCE_NOT_FOUND

    def test_profile_resolves_active_user(self, runtime, bob):
        fields = normalize_payload(
            "profile", {"profile_id": str(bob.id)}, runtime.resolvers
        )

        assert fields["profile_ref"] == str(bob.id)
        assert fields["reference"]["id"] == bob.id
        assert fields["reference"]["display_name"] == bob.display_name

    def test_profile_of_inactive_user_is_not_found(self, runtime, bob):
        bob.is_active = False
        bob.save(update_fields=["is_active"])

        with pytest.raises(NotFoundError):
            normalize_payload("profile", {"profile_id": bob.id}, runtime.resolvers)

    def test_missing_resolver_means_not_found(self):
        with pytest.raises(NotFoundError):
            normalize_payload("product", {"product_id": "42"}, {})

    def test_reference_snapshot_is_json_safe(self):
        """
        Why it matters: the snapshot is stored in a JSON column and pushed
        through the channel layer, so model rows with decimals and dates
        must not break either.
        """
        resolver = Mock()
        resolver.resolve.return_value = {
            "id": 5,
            "price": Decimal("19.90"),
            "listed_at": date(2026, 1, 2),
        }

        fields = normalize_payload(
            "product", {"product_id": "5"}, {"product": resolver}
        )

        resolver.resolve.assert_called_once_with("5")
        assert fields["reference"] == {
            "id": 5,
            "price": "19.90",
            "listed_at": "2026-01-02",
        }
