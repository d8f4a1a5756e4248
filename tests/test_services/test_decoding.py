"""Tests for collection and URL decoding."""


class TestDecodePage:
    """Test suite for both pagination shapes."""

    def test_plain_array(self):
        from finflux.services.decoding import ResponseShape, classify, decode_page

        payload = [{"id": 1}, {"id": 2}]
        page = decode_page(payload)

        assert classify(payload) == ResponseShape.ARRAY
        assert len(page) == 2
        assert page.total_elements == 2
        assert page.total_pages == 1

    def test_page_envelope(self):
        from finflux.services.decoding import ResponseShape, classify, decode_page

        payload = {
            "content": [{"id": 1}],
            "totalElements": 11,
            "totalPages": 2,
            "number": 1,
        }
        page = decode_page(payload)

        assert classify(payload) == ResponseShape.PAGE
        assert page.content == [{"id": 1}]
        assert page.total_elements == 11
        assert page.first is False
        assert page.last is True

    def test_unknown_shape_is_empty(self):
        from finflux.services.decoding import decode_collection

        assert decode_collection({"message": "ok"}) == []
        assert decode_collection(None) == []
        assert decode_collection("text") == []

    def test_non_dict_items_are_dropped(self):
        from finflux.services.decoding import decode_collection

        assert decode_collection([{"id": 1}, None, "x", 3]) == [{"id": 1}]


class TestDecodeUrl:
    """Test suite for URL extraction from upload responses."""

    def test_plain_string(self):
        from finflux.services.decoding import decode_url

        assert decode_url("  https://x.test/a.pdf \n") == "https://x.test/a.pdf"

    def test_object_with_default_keys(self):
        from finflux.services.decoding import decode_url

        assert decode_url({"fileUrl": "https://x.test/b.pdf"}) == "https://x.test/b.pdf"

    def test_key_order_is_respected(self):
        from finflux.services.decoding import decode_url

        payload = {"url": "https://x.test/plain", "secure_url": "https://x.test/secure"}

        assert decode_url(payload, "secure_url", "url") == "https://x.test/secure"

    def test_missing_url(self):
        from finflux.services.decoding import decode_url

        assert decode_url({"url": ""}) is None
        assert decode_url(None) is None
        assert decode_url("   ") is None
