"""
Public request id format.
"""
import re

from roadside.services.matching_service import generate_request_id, to_base36


class TestRequestIds:

    def test_format(self):
        assert re.fullmatch(r"REQ-[0-9A-Z]+-[0-9A-Z]{5}", generate_request_id())

    def test_unique_across_calls(self):
        assert len({generate_request_id() for _ in range(50)}) == 50

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"
