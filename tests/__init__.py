import json

PEER_A = "nodekey:aaaa"
PEER_B = "nodekey:bbbb"

# two peers, one online tagged tag:prod with an IPv4 and an IPv6 address, one offline
TWO_PEERS = {
    "Version": "1.76.6",
    "BackendState": "Running",
    "Self": {"TailscaleIPs": ["100.64.0.100"], "Online": True},
    "Peer": {
        PEER_A: {
            "HostName": "prod-1",
            "TailscaleIPs": ["100.64.0.1", "fe80::1"],
            "Online": True,
            "Tags": ["tag:prod"],
        },
        PEER_B: {
            "HostName": "laptop",
            "TailscaleIPs": ["100.64.0.2"],
            "Online": False,
            "Tags": [],
        },
    },
}


def status_bytes(doc: dict) -> bytes:
    return json.dumps(doc).encode()
