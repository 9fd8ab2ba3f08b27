"""In-memory stand-ins for the multicast transport."""

import asyncio

from lan_discovery.discovery.errors import TransportError


class FakeLan:
    """Delivers every sent datagram to every attached transport, sender included."""

    def __init__(self):
        self.transports = []

    def attach(self, address):
        transport = FakeTransport(address, lan=self)
        self.transports.append(transport)
        return transport

    def deliver(self, payload, source):
        for transport in self.transports:
            if not transport.closed:
                transport.incoming.put_nowait((payload, source))


class FakeTransport:
    def __init__(self, local_address=("192.168.1.10", 40000), lan=None):
        self.local_address = local_address
        self.lan = lan
        self.sent = []
        self.incoming = asyncio.Queue()
        self.closed = False
        self.fail_send = False

    def send(self, payload):
        if self.fail_send:
            raise TransportError("network unreachable")
        self.sent.append(payload)
        if self.lan:
            self.lan.deliver(payload, self.local_address)

    async def receive(self):
        item = await self.incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


async def wait_for(predicate, timeout=2.0):
    """Poll predicate until it is true or timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()
