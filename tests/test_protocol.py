import struct
import unittest

from zapcat_agent.protocol import (NOTSUPPORTED, ProtocolVersion, Query,
                                   QueryKind, decode_response, encode_response,
                                   hexdump, parse_query, resolve_version)


class TestParseQuery(unittest.TestCase):

    def test_managed_attribute(self):
        query = parse_query("jmx[java.lang:type=Memory][HeapMemoryUsage]")
        self.assertEqual(query, Query(QueryKind.MANAGED_ATTRIBUTE,
                                      object_name="java.lang:type=Memory",
                                      attribute_name="HeapMemoryUsage"))
        self.assertIsNone(query.key)

    def test_managed_attribute_object_name_with_brackets(self):
        query = parse_query("jmx[a[1]][Value]")
        self.assertEqual(query.object_name, "a[1]")
        self.assertEqual(query.attribute_name, "Value")

    def test_system_property(self):
        query = parse_query("system.property[os.name]")
        self.assertEqual(query, Query(QueryKind.SYSTEM_PROPERTY, key="os.name"))

    def test_environment(self):
        query = parse_query("system.env[HOME]")
        self.assertEqual(query, Query(QueryKind.ENVIRONMENT, key="HOME"))

    def test_probes_are_exact_matches(self):
        self.assertEqual(parse_query("agent.ping").kind, QueryKind.PING)
        self.assertEqual(parse_query("agent.version").kind, QueryKind.VERSION)
        self.assertEqual(parse_query("agent.ping ").kind, QueryKind.UNKNOWN)
        self.assertEqual(parse_query("agent.versions").kind, QueryKind.UNKNOWN)

    def test_unknown(self):
        self.assertEqual(parse_query("bogus!!query"), Query(QueryKind.UNKNOWN))
        self.assertEqual(parse_query(""), Query(QueryKind.UNKNOWN))

    def test_missing_brackets_give_empty_parameters(self):
        self.assertEqual(parse_query("system.property").key, "")
        self.assertEqual(parse_query("system.env]HOME[").key, "")

        query = parse_query("jmx")
        self.assertEqual(query.kind, QueryKind.MANAGED_ATTRIBUTE)
        self.assertEqual(query.object_name, "")
        self.assertEqual(query.attribute_name, "")

        query = parse_query("jmx]broken[")
        self.assertEqual(query.object_name, "")
        self.assertEqual(query.attribute_name, "")

    def test_single_bracket_group_has_no_object_name(self):
        query = parse_query("jmx[Value]")
        self.assertEqual(query.object_name, "")
        self.assertEqual(query.attribute_name, "Value")


class TestEncodeResponse(unittest.TestCase):

    def test_framed(self):
        data = encode_response("1", ProtocolVersion.V1_4)
        self.assertEqual(data, b"ZBXD\x01" + b"\x01\x00\x00\x00\x00\x00\x00\x00" + b"1")

    def test_framed_is_the_default(self):
        self.assertEqual(encode_response(NOTSUPPORTED)[:5], b"ZBXD\x01")

    def test_framed_length_field(self):
        for response in ("", "x", "zapcat", "a" * 300):
            data = encode_response(response, ProtocolVersion.V1_4)
            self.assertEqual(len(data), 13 + len(response))
            self.assertEqual(data[:5], bytes([0x5A, 0x42, 0x58, 0x44, 0x01]))
            (length,) = struct.unpack("<Q", data[5:13])
            self.assertEqual(length, len(response))

    def test_legacy_is_raw(self):
        self.assertEqual(encode_response("ZBX_NOTSUPPORTED", ProtocolVersion.V1_1),
                         b"ZBX_NOTSUPPORTED")
        self.assertEqual(encode_response("", ProtocolVersion.V1_1), b"")

    def test_characters_are_truncated_to_a_byte(self):
        self.assertEqual(encode_response("\xe9", ProtocolVersion.V1_1), b"\xe9")
        self.assertEqual(encode_response("€", ProtocolVersion.V1_1), b"\xac")
        data = encode_response("€", ProtocolVersion.V1_4)
        self.assertEqual(data[5:13], b"\x01" + b"\x00" * 7)

    def test_version_given_as_text(self):
        self.assertEqual(encode_response("1", "1.1"), b"1")
        self.assertEqual(encode_response("1", "1.4"), encode_response("1", ProtocolVersion.V1_4))

    def test_unknown_version_is_framed_with_a_warning(self):
        with self.assertLogs("zapcat_agent", level="WARNING") as logs:
            data = encode_response("1", "2.0")
        self.assertEqual(data, encode_response("1", ProtocolVersion.V1_4))
        self.assertIn("Unsupported protocol '2.0'", logs.output[0])


class TestResolveVersion(unittest.TestCase):

    def test_resolve(self):
        self.assertIs(resolve_version(None), ProtocolVersion.V1_4)
        self.assertIs(resolve_version("1.1"), ProtocolVersion.V1_1)
        self.assertIs(resolve_version(ProtocolVersion.V1_1), ProtocolVersion.V1_1)
        with self.assertLogs("zapcat_agent.protocol", level="WARNING"):
            self.assertIs(resolve_version("bogus"), ProtocolVersion.V1_4)


class TestDecodeResponse(unittest.TestCase):

    def test_framed(self):
        self.assertEqual(decode_response(b"ZBXD\x01\x03" + b"\x00" * 7 + b"abcdef"), "abc")

    def test_raw(self):
        self.assertEqual(decode_response(b"1"), "1")
        self.assertEqual(decode_response(b"ZBXD"), "ZBXD")

    def test_hexdump(self):
        self.assertEqual(hexdump(b"ZBXD\x01"), "5a 42 58 44 01")


if __name__ == '__main__':
    unittest.main()
