"""Test text processing, validation and logging utilities."""

import logging
import pytest
from dataclasses import replace

from lostphone_search.core.exceptions import MissingCriteriaError, ValidationError
from lostphone_search.models.query import FilterSet, SearchRequest
from lostphone_search.utils.logging_config import StructuredLogger, setup_logging
from lostphone_search.utils.text_processing import TextProcessor
from lostphone_search.utils.validators import (
    validate_record,
    validate_records_batch,
    validate_request,
)


class TestTextProcessor:
    """Test text normalization."""

    def test_clean_query(self):
        """Test queries are trimmed, collapsed and lowercased."""
        processor = TextProcessor()

        assert processor.clean_query("  Black \t iPhone\n13 ") == "black iphone 13"
        assert processor.clean_query(None) == ""

    def test_clean_label(self):
        """Test labels keep their case and blank labels vanish."""
        processor = TextProcessor()

        assert processor.clean_label("  Quezon   City ") == "Quezon City"
        assert processor.clean_label("   ") is None
        assert processor.clean_label(None) is None

    def test_split_words(self):
        """Test word splitting."""
        assert TextProcessor().split_words("Blue Samsung  phone") == ["Blue", "Samsung", "phone"]
        assert TextProcessor().split_words("") == []


class TestValidators:
    """Test record and request validation."""

    def test_valid_batch(self, sample_records):
        """Test lost and found records may share ids."""
        validate_records_batch(sample_records)

    def test_found_contact_required(self, found_pixel):
        """Test found reports need finder contact details."""
        with pytest.raises(ValidationError, match="Finder contact"):
            validate_record(replace(found_pixel, reporter_contact=" "))

    def test_wrong_type(self):
        """Test non-records are rejected."""
        with pytest.raises(ValidationError, match="record type"):
            validate_record({"id": 1})

    def test_request_criteria(self):
        """Test any single criterion is enough."""
        validate_request(SearchRequest(query="pixel"))
        validate_request(SearchRequest(lat=14.6, lon=121.0))
        validate_request(SearchRequest(filters=FilterSet(brands=["google"])))

        with pytest.raises(MissingCriteriaError):
            validate_request(SearchRequest(query=" ", filters=FilterSet(city="  ")))


class TestStructuredLogger:
    """Test request context logging."""

    def test_context_appended(self, caplog):
        """Test context is appended and None values dropped."""
        log = StructuredLogger("lostphone_search.test").with_context(type="phone", caller=None)

        with caplog.at_level(logging.INFO, logger="lostphone_search.test"):
            log.info("Search completed")

        assert caplog.messages == ["Search completed [type=phone]"]

    def test_context_is_copied(self):
        """Test deriving a logger leaves the parent untouched."""
        parent = StructuredLogger("lostphone_search.test").with_context(type="imei")
        child = parent.with_context(query="3569")

        assert parent.context == {"type": "imei"}
        assert child.format_message("x") == "x [type=imei query=3569]"

    def test_long_values_shortened(self):
        """Test long context values are truncated."""
        log = StructuredLogger("lostphone_search.test").with_context(query="a" * 100)
        message = log.format_message("x")

        assert message.endswith("...]")
        assert len(message) < 80

    def test_setup_logging(self):
        """Test package and noisy logger levels."""
        setup_logging("debug")

        assert logging.getLogger("lostphone_search").level == logging.DEBUG
        assert logging.getLogger("sklearn").level == logging.WARNING
        setup_logging("WARNING")
