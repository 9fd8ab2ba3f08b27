import unittest

from lan_discovery.discovery.codec import decode_announcement, encode_announcement
from lan_discovery.discovery.errors import DecodeError
from lan_discovery.discovery.models import Announcement


class TestAnnouncementCodec(unittest.TestCase):

    def test_encode_produces_name_and_port(self):
        data = encode_announcement(Announcement(name="PlayerA", port=8080))
        self.assertEqual(data, b'{"name":"PlayerA","port":8080}')

    def test_decode_ignores_unknown_fields(self):
        msg = decode_announcement(b'{"name": "PlayerB", "port": 9090, "version": 2}')
        self.assertEqual(msg.name, "PlayerB")
        self.assertEqual(msg.port, 9090)

    def test_decode_rejects_bad_payloads(self):
        bad_payloads = [
            b"not json at all",
            b'{"name": "PlayerB"}',
            b'{"port": 9090}',
            b'{"name": "PlayerB", "port": "9090"}',
            b'{"name": "PlayerB", "port": 70000}',
            b'{"name": "PlayerB", "port": -1}',
            b'{"name": "PlayerB", "port": true}',
            b'{"name": 42, "port": 9090}',
            b'["PlayerB", 9090]',
            b"\xff\xfe\x00",
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(DecodeError):
                    decode_announcement(payload)


if __name__ == "__main__":
    unittest.main()
