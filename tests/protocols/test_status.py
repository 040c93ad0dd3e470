"""Unit tests for the tailscale status parser."""

import unittest

from tailscale_keepalived.protocols.status import PeerRecord, StatusParseError, parse_status

from .. import PEER_A, PEER_B, TWO_PEERS, status_bytes


class TestParseStatus(unittest.TestCase):
    """Test parse_status()."""

    def test_two_peers(self):
        """Test parsing a full status document, unknown fields are ignored."""

        roster = parse_status(status_bytes(TWO_PEERS))

        self.assertEqual(set(roster), {PEER_A, PEER_B})
        self.assertEqual(
            roster[PEER_A], PeerRecord(["100.64.0.1", "fe80::1"], True, ["tag:prod"])
        )
        self.assertEqual(roster[PEER_B], PeerRecord(["100.64.0.2"], False, []))
        self.assertTrue(roster[PEER_A].is_online)
        self.assertFalse(roster[PEER_B].is_online)

    def test_no_peers(self):
        """Test documents without any peers."""

        self.assertEqual(parse_status(b'{"Peer": {}}'), {})
        self.assertEqual(parse_status(b"{}"), {})
        self.assertEqual(parse_status(b'{"Peer": null}'), {})
        self.assertEqual(parse_status(b'{"BackendState": "Stopped"}'), {})

    def test_optional_fields(self):
        """Test peers without Online or Tags."""

        roster = parse_status(b'{"Peer": {"k": {"TailscaleIPs": ["100.64.0.3"]}}}')
        peer = roster["k"]
        self.assertIsNone(peer.online)
        self.assertFalse(peer.is_online)
        self.assertIsNone(peer.tags)
        self.assertEqual(peer.tag_set, frozenset())

        roster = parse_status(
            b'{"Peer": {"k": {"TailscaleIPs": [], "Online": null, "Tags": null}}}'
        )
        self.assertEqual(roster["k"], PeerRecord([], None, None))
        self.assertFalse(roster["k"].is_online)

    def test_tag_set(self):
        """Test tags are compared as given."""

        peer = PeerRecord([], True, ["tag:Prod", "tag:prod", "tag:prod"])
        self.assertEqual(peer.tag_set, frozenset({"tag:Prod", "tag:prod"}))

    def test_invalid_encoding(self):
        """Test documents that are not utf-8 or not json."""

        with self.assertRaises(StatusParseError):
            parse_status(b"\xff\xfe{}")
        with self.assertRaises(StatusParseError):
            parse_status(b"")
        with self.assertRaises(StatusParseError):
            parse_status(b'{"Peer": {')
        with self.assertRaises(StatusParseError):
            parse_status(b"tailscale is stopped")

    def test_invalid_shape(self):
        """Test json documents that do not look like tailscale status."""

        invalid = [
            b"[]",
            b'"Peer"',
            b'{"Peer": []}',
            b'{"Peer": {"k": []}}',
            b'{"Peer": {"k": {}}}',
            b'{"Peer": {"k": {"TailscaleIPs": null}}}',
            b'{"Peer": {"k": {"TailscaleIPs": "100.64.0.1"}}}',
            b'{"Peer": {"k": {"TailscaleIPs": [1]}}}',
            b'{"Peer": {"k": {"TailscaleIPs": [], "Online": "true"}}}',
            b'{"Peer": {"k": {"TailscaleIPs": [], "Online": 1}}}',
            b'{"Peer": {"k": {"TailscaleIPs": [], "Tags": "tag:prod"}}}',
            b'{"Peer": {"k": {"TailscaleIPs": [], "Tags": [null]}}}',
        ]
        for raw in invalid:
            with self.subTest(raw=raw), self.assertRaises(StatusParseError):
                parse_status(raw)
