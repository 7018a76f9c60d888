import pytest

WG_CONF = """[Interface]
PrivateKey = A
Address = 10.0.0.2/32
DNS = 10.0.0.1

[Peer]
PublicKey = B
Endpoint = 1.2.3.4:51820
AllowedIPs = 0.0.0.0/0, ::/0
"""


@pytest.fixture
def wg_conf(tmp_path):
    path = tmp_path / "wg0.conf"
    path.write_text(WG_CONF)
    return path
