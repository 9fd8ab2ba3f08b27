import unittest

from lan_discovery.discovery.interfaces import parse_interface, score_address, select_local_ipv4


class TestInterfaceSelection(unittest.TestCase):

    def test_unusable_addresses_score_negative(self):
        for ip in ["127.0.0.1", "169.254.10.1", "224.0.0.1", "0.0.0.0", "garbage"]:
            with self.subTest(ip=ip):
                self.assertLess(score_address(ip), 0)

    def test_private_ranges_are_preferred(self):
        self.assertGreater(score_address("192.168.1.5"), score_address("172.20.0.5"))
        self.assertGreater(score_address("172.20.0.5"), score_address("10.0.0.5"))
        self.assertGreater(score_address("10.0.0.5"), score_address("8.8.8.8"))

    def test_select_picks_best_candidate(self):
        candidates = ["127.0.0.1", "10.1.2.3", "192.168.0.7", "172.17.0.1"]
        self.assertEqual(select_local_ipv4(candidates), "192.168.0.7")

    def test_select_falls_back_to_loopback(self):
        self.assertEqual(select_local_ipv4(["127.0.1.1", "169.254.0.3"]), "127.0.0.1")
        self.assertEqual(select_local_ipv4([]), "127.0.0.1")

    def test_parse_interface_accepts_unicast(self):
        self.assertEqual(parse_interface("192.168.1.11"), "192.168.1.11")
        self.assertEqual(parse_interface("127.0.0.1"), "127.0.0.1")

    def test_parse_interface_rejects_non_unicast(self):
        for ip in ["0.0.0.0", "239.255.255.250", "255.255.255.255", "eth0", "192.168.1"]:
            with self.subTest(ip=ip):
                with self.assertRaises(ValueError):
                    parse_interface(ip)


if __name__ == "__main__":
    unittest.main()
