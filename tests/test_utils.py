# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Unit tests for utils.py."""

import logging
from datetime import datetime, timedelta, timezone

from conftest import new_pdf
from pikepdf import Dictionary, Name

from pdfunicode.utils import format_pdf_date, resolve_indirect, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_default_level(self):
        logger = setup_logging()

        assert logger.name == "pdfunicode"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_verbose(self):
        assert setup_logging(verbose=True).level == logging.DEBUG

    def test_quiet_wins(self):
        assert setup_logging(verbose=True, quiet=True).level == logging.ERROR

    def test_no_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1


class TestFormatPdfDate:
    """Tests for format_pdf_date()."""

    def test_utc(self):
        dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

        assert format_pdf_date(dt) == "D:20240115123045+00'00'"

    def test_converts_to_utc(self):
        dt = datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_pdf_date(dt) == "D:20240115120000+00'00'"

    def test_naive_treated_as_utc(self):
        assert format_pdf_date(datetime(2024, 1, 15)) == "D:20240115000000+00'00'"

    def test_now(self):
        assert format_pdf_date().startswith("D:20")


class TestResolveIndirect:
    """Tests for resolve_indirect()."""

    def test_indirect(self):
        pdf = new_pdf()
        obj = pdf.make_indirect(Dictionary(Type=Name.Font))

        assert resolve_indirect(obj).Type == Name.Font

    def test_plain_value(self):
        assert resolve_indirect(42) == 42
