import asyncio
import time
import unittest

from fastapi.testclient import TestClient

from lan_discovery.api.app import create_app
from lan_discovery.discovery.service import DiscoveryService


class TestPeerApi(unittest.TestCase):

    def setUp(self):
        self.service = DiscoveryService(name="PlayerA", service_port=8080, peer_timeout=10)
        now = time.monotonic()
        asyncio.run(self.service.registry.upsert(
            "192.168.1.20:50001", "PlayerB", 9090, now, ("192.168.1.20", 50001)
        ))
        asyncio.run(self.service.registry.upsert(
            "192.168.1.30:50003", "Gone", 7070, now - 60, ("192.168.1.30", 50003)
        ))
        self.client = TestClient(create_app(self.service))

    def test_list_peers_returns_only_alive_peers(self):
        response = self.client.get("/api/peers")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"peers": [{
            "peer_id": "192.168.1.20:50001",
            "name": "PlayerB",
            "ip_address": "192.168.1.20",
            "source_port": 50001,
            "port": 9090,
        }]})

    def test_get_single_peer(self):
        self.assertEqual(self.client.get("/api/peers/192.168.1.20:50001").json()["name"], "PlayerB")
        self.assertEqual(self.client.get("/api/peers/192.168.1.30:50003").status_code, 404)

    def test_update_settings_changes_announcement(self):
        response = self.client.put("/api/settings", json={"name": "Renamed", "port": 9000})

        self.assertEqual(response.status_code, 200)
        settings = self.client.get("/api/settings").json()
        self.assertEqual((settings["name"], settings["port"]), ("Renamed", 9000))
        self.assertEqual(self.service.build_announcement().name, "Renamed")

    def test_update_settings_rejects_bad_port(self):
        response = self.client.put("/api/settings", json={"port": 70000})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.service.service_port, 8080)

    def test_websocket_sends_current_peers_on_connect(self):
        with self.client.websocket_connect("/ws") as ws:
            message = ws.receive_json()

        self.assertEqual(message["event"], "peers")
        self.assertEqual([p["name"] for p in message["data"]], ["PlayerB"])


if __name__ == "__main__":
    unittest.main()
