import unittest
import sys
import os
from unittest.mock import Mock

import requests

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from py_quotes.search import parse_search_response, search_instruments, unescape_unicode, TENCENT_SEARCH_URL
from py_quotes.types import InstrumentMatch

SMARTBOX_RESPONSE = (
    'v_hint="sh~600519~\\u8d35\\u5dde\\u8305\\u53f0~gzmt~GP-A'
    '^sz~000001~\\u5e73\\u5b89\\u94f6\\u884c~payh~GP-A'
    '^us~aapl.oq~Apple~apple~GP";'
)


class TestInstrumentSearch(unittest.TestCase):

    def test_unescape(self):
        self.assertEqual(unescape_unicode("\\u8d35\\u5dde"), "贵州")
        self.assertEqual(unescape_unicode("plain"), "plain")

    def test_parse_response(self):
        matches = parse_search_response(SMARTBOX_RESPONSE)
        self.assertEqual(matches[0], InstrumentMatch(market="sh", code="600519", name="贵州茅台"))
        self.assertEqual(matches[1], InstrumentMatch(market="sz", code="000001", name="平安银行"))
        self.assertEqual(matches[2].market, "us")
        self.assertEqual(len(matches), 3)

    def test_parse_caps_results(self):
        items = "^".join(f"sh~60000{i % 10}~N{i}~p~GP-A" for i in range(15))
        self.assertEqual(len(parse_search_response(f'v_hint="{items}";')), 10)

    def test_parse_no_hits(self):
        self.assertEqual(parse_search_response('v_hint="N";'), [])
        self.assertEqual(parse_search_response('v_hint="";'), [])
        self.assertEqual(parse_search_response(""), [])

    def test_search_uses_session(self):
        response = Mock()
        response.content = SMARTBOX_RESPONSE.encode("gbk")
        session = Mock()
        session.get.return_value = response

        matches = search_instruments("sh600519", session=session)

        self.assertEqual(matches[0].code, "600519")
        args, kwargs = session.get.call_args
        self.assertEqual(args[0], TENCENT_SEARCH_URL)
        self.assertEqual(kwargs["params"]["q"], "600519")

    def test_search_errors_give_empty_list(self):
        session = Mock()
        session.get.side_effect = requests.Timeout("slow")
        self.assertEqual(search_instruments("moutai", session=session), [])

    def test_blank_query_makes_no_request(self):
        session = Mock()
        self.assertEqual(search_instruments("   ", session=session), [])
        session.get.assert_not_called()


if __name__ == '__main__':
    unittest.main()
